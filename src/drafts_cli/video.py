"""
DraftsCliDemo video renderer.

Rendering pipeline:
  1. Each frame's PresentationState is derived from its frame number alone
  2. The state is drawn as SVG and rasterised with rsvg-convert (parallel,
     out of order, across a process pool)
  3. ffmpeg assembles the PNG sequence into an H.264 MP4

Run:
    drafts-demo                       # full render
    drafts-demo --frame 65            # preview a single frame
    drafts-demo --frame 65 --static   # thumbnail, cursor drawn without blink

Requires: rsvg-convert (librsvg), ffmpeg
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import shutil
import subprocess
import sys
from concurrent.futures import ProcessPoolExecutor, as_completed
from pathlib import Path

from drafts_cli.composition import COMPOSITION_ID, HEIGHT, WIDTH, load_timeline, load_timing
from drafts_cli.errors import ConfigError, ResourceError
from drafts_cli.fonts import FALLBACK_FONT_STACK, FontResource, terminal_font
from drafts_cli.render import render_svg
from drafts_cli.timeline import Timeline, TimingConfig, derive_state

logger = logging.getLogger("drafts_cli")

FRAMES_DIR = Path("frames-drafts-demo")
OUTPUT_PATH = Path("drafts-cli-demo.mp4")

FONT_ATTEMPTS = 3
FONT_RETRY_DELAY = 0.5


# === Font ===

async def acquire_font(resource: FontResource, attempts: int = FONT_ATTEMPTS,
                       retry_delay: float = FONT_RETRY_DELAY) -> str:
    """Resolve the terminal font, retrying, then fall back to generic monospace."""
    for attempt in range(1, attempts + 1):
        try:
            return await resource.acquire()
        except ResourceError as e:
            logger.warning(f"Font load attempt {attempt}/{attempts} failed: {e}")
            resource.reset()
            if attempt < attempts:
                await asyncio.sleep(retry_delay)
    logger.warning("Continuing without the terminal font")
    return FALLBACK_FONT_STACK


# === Frame Generation ===

def generate_svg(frame_num: int, timeline: Timeline, timing: TimingConfig,
                 font_stack: str, blink: bool = True) -> str:
    """Generate SVG markup for a single frame."""
    state = derive_state(frame_num, timeline, timing)
    return render_svg(state, len(timeline.scenes), font_stack=font_stack, blink=blink)


def rasterize(svg: str, png_path: str) -> subprocess.CompletedProcess:
    return subprocess.run(
        ["rsvg-convert", "--width", str(WIDTH), "--height", str(HEIGHT),
         "--format", "png", "--output", png_path],
        input=svg.encode("utf-8"),
        capture_output=True,
    )


def render_single_frame(args: tuple[int, str, Timeline, TimingConfig, str]) -> int:
    """Render one frame: generate SVG, pipe to rsvg-convert, save PNG."""
    frame_num, output_dir, timeline, timing, font_stack = args
    svg = generate_svg(frame_num, timeline, timing, font_stack)
    png_path = os.path.join(output_dir, f"{frame_num:04d}.png")

    proc = rasterize(svg, png_path)
    if proc.returncode != 0:
        logger.error(f"Frame {frame_num}: {proc.stderr.decode(errors='replace').strip()}")
        return -1
    return frame_num


def render_frames(output_dir: str, timeline: Timeline, timing: TimingConfig,
                  font_stack: str, workers: int | None = None) -> int:
    """Generate all frames in parallel. Returns the number of failed frames."""
    os.makedirs(output_dir, exist_ok=True)

    total_frames = timeline.total_frames
    tasks = [(i, output_dir, timeline, timing, font_stack) for i in range(total_frames)]
    workers = workers or min(32, os.cpu_count() or 4)

    print(f"Rendering {total_frames} frames using {workers} workers...")
    completed = 0
    errors = 0

    with ProcessPoolExecutor(max_workers=workers) as pool:
        futures = {pool.submit(render_single_frame, t): t[0] for t in tasks}
        for future in as_completed(futures):
            if future.result() == -1:
                errors += 1
            else:
                completed += 1
                if completed % 50 == 0:
                    print(f"  {completed}/{total_frames} frames rendered")

    print(f"Rendered {completed} frames ({errors} errors)")
    return errors


def assemble_video(frames_dir: str, output_path: str, fps: int) -> None:
    """Use ffmpeg to combine frames into mp4."""
    print("Assembling video...")
    cmd = [
        "ffmpeg",
        "-framerate", str(fps),
        "-i", f"{frames_dir}/%04d.png",
        "-c:v", "libx264",
        "-pix_fmt", "yuv420p",
        "-movflags", "+faststart",
        "-y", output_path,
    ]
    proc = subprocess.run(cmd, capture_output=True, text=True)
    if proc.returncode != 0:
        raise RuntimeError(f"ffmpeg failed:\n{proc.stderr}")
    print(f"Video saved to {output_path}")


def preview_frame(frame_num: int, timeline: Timeline, timing: TimingConfig,
                  font_stack: str, blink: bool = True) -> None:
    """Render and save a single frame as SVG + PNG for preview."""
    svg = generate_svg(frame_num, timeline, timing, font_stack, blink=blink)
    svg_path = f"preview-frame-{frame_num:04d}.svg"
    png_path = f"preview-frame-{frame_num:04d}.png"

    with open(svg_path, "w") as f:
        f.write(svg)
    print(f"SVG saved to {svg_path}")

    proc = rasterize(svg, png_path)
    if proc.returncode == 0:
        print(f"PNG saved to {png_path}")
    else:
        print(f"rsvg-convert failed: {proc.stderr.decode(errors='replace')}", file=sys.stderr)


def probe(output_path: str) -> dict | None:
    proc = subprocess.run(
        ["ffprobe", "-v", "quiet", "-show_entries",
         "format=duration,size", "-show_entries",
         "stream=width,height,codec_name,r_frame_rate",
         "-of", "json", output_path],
        capture_output=True, text=True,
    )
    if proc.returncode != 0:
        return None
    return json.loads(proc.stdout)


# === Entry Point ===

def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(
        description=f"{COMPOSITION_ID} - render the drafts CLI demo video")
    parser.add_argument("--frame", type=int, default=None,
                        help="Preview a single frame number")
    parser.add_argument("--static", action="store_true",
                        help="Ignore cursor blink (for thumbnails)")
    parser.add_argument("--output", type=str, default=str(OUTPUT_PATH),
                        help="Output video path")
    parser.add_argument("--frames-dir", type=str, default=str(FRAMES_DIR),
                        help="Directory for intermediate PNG frames")
    parser.add_argument("--keep-frames", action="store_true",
                        help="Keep intermediate PNG frames after assembly")
    parser.add_argument("--workers", type=int, default=None,
                        help="Render worker processes (default: CPU count, max 32)")
    parser.add_argument("--debug", action="store_true",
                        help="Enable debug logging")
    args = parser.parse_args()

    if args.debug:
        logging.getLogger("drafts_cli").setLevel(logging.DEBUG)

    try:
        timeline = load_timeline()
        timing = load_timing()
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if args.frame is not None and args.frame < 0:
        parser.error("--frame must be >= 0")

    font_stack = asyncio.run(acquire_font(terminal_font))

    if args.frame is not None:
        state = derive_state(args.frame, timeline, timing)
        print(f"Previewing frame {args.frame} (scene {state.scene_index}: "
              f"{state.description}, local frame {state.local_frame})")
        preview_frame(args.frame, timeline, timing, font_stack, blink=not args.static)
        return

    print(f"{COMPOSITION_ID}")
    print(f"   Resolution: {WIDTH}x{HEIGHT} @ {timeline.fps}fps")
    print(f"   Frames: {timeline.total_frames} ({timeline.total_frames / timeline.fps:.1f}s), "
          f"{timeline.frames_per_scene} per scene")
    print()

    errors = render_frames(args.frames_dir, timeline, timing, font_stack, args.workers)
    if errors:
        print(f"{errors} frames failed to render", file=sys.stderr)
        sys.exit(1)

    try:
        assemble_video(args.frames_dir, args.output, timeline.fps)
    except RuntimeError as e:
        print(str(e), file=sys.stderr)
        sys.exit(1)

    if not args.keep_frames:
        shutil.rmtree(args.frames_dir, ignore_errors=True)

    info = probe(args.output)
    if info is not None:
        print(f"   {json.dumps(info, indent=2)}")

    print()
    print(f"Done! Watch: {args.output}")


if __name__ == "__main__":
    main()
