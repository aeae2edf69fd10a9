"""
CLI to emojify an image or a video file.
"""
from __future__ import annotations
import argparse, logging, os
import cv2
from core.config import Settings
from core.detector import FaceDetector, ModelLoader
from core.visual import emojify_image, emojify_video

VIDEO_EXTS = {".mp4", ".avi", ".mov", ".mkv", ".webm"}

def main(argv=None):
    p = argparse.ArgumentParser()
    p.add_argument("--input", required=True, help="Path to input image or video")
    p.add_argument("--out", default=None, help="Path to output file")
    p.add_argument("--every", type=int, default=1, help="Detect every N frames (video only)")
    args = p.parse_args(argv)

    logging.basicConfig(level=logging.INFO)
    settings = Settings()
    loader = ModelLoader(settings)
    loader.load()
    detector = FaceDetector(loader, settings)

    base, ext = os.path.splitext(args.input)
    if ext.lower() in VIDEO_EXTS:
        out = args.out or base + "_emoji.avi"
        emojify_video(args.input, out, detector, settings, analyze_every_n_frames=args.every)
    else:
        image = cv2.imread(args.input)
        if image is None:
            raise SystemExit(f"Could not read image: {args.input}")
        out = args.out or base + "_emoji" + (ext or ".png")
        cv2.imwrite(out, emojify_image(image, detector, settings))
    print(f"✅ Emojified output written to {out}")
    return out

if __name__ == "__main__":
    main()
