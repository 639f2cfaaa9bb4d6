# app/services/cover_frame.py
# 영상에서 "완성된 요리" 같은 프레임 1장 고르기
# - 영상 후반부 위주 7개 시점에서 프레임 추출 (ffprobe 길이 → ffmpeg 시킹)
# - 디테일/대비/따뜻한 색/채도/후반부 가점/밝기 벌점으로 점수화, 최고점 1장
# - 임시 폴더는 성공/실패와 관계없이 삭제

from __future__ import annotations
import asyncio
import base64
import io
import logging
import re
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from PIL import Image, ImageStat

from app.core.config import settings

log = logging.getLogger(__name__)

# 영상 길이 대비 위치: 마지막 완성 샷이 보통 끝에 있음
FRAME_POSITIONS = (0.40, 0.60, 0.75, 0.85, 0.90, 0.95, 0.99)


@dataclass(frozen=True)
class FrameStats:
    means: Tuple[float, ...]     # R, G, B 평균
    stdevs: Tuple[float, ...]    # 채널별 표준편차
    entropy: float               # 그레이스케일 히스토그램 엔트로피(bit)

    @property
    def brightness(self) -> float:
        return sum(self.means[:3]) / 3


def frame_stats(image: Image.Image) -> FrameStats:
    rgb = image.convert("RGB")
    stat = ImageStat.Stat(rgb)
    return FrameStats(
        means=tuple(stat.mean),
        stdevs=tuple(stat.stddev),
        entropy=rgb.convert("L").entropy(),
    )


def warmth_score(means: Sequence[float]) -> float:
    # 음식은 대체로 붉은/노란 톤, 파랑은 배경/접시/그림자
    if not means:
        return 0.0
    red, green, blue = (list(means) + [0.0, 0.0, 0.0])[:3]
    return max(0.0, red * 1.2 + green * 0.8 - blue * 1.5)


def score_frame(stats: FrameStats, index: int, total: int) -> float:
    """index는 1부터. 후반 프레임일수록 가점."""
    red, green, blue = (list(stats.means) + [0.0, 0.0, 0.0])[:3]
    mean = stats.brightness
    variance = sum(stats.stdevs) / (len(stats.stdevs) or 1)
    saturation = max(red, green, blue) - min(red, green, blue)
    recency_boost = (index / total) * 40

    if mean < 40:
        brightness_penalty = -100     # 페이드아웃
    elif mean > 230:
        brightness_penalty = -50      # 화이트아웃/플래시
    else:
        brightness_penalty = 0
    well_lit_bonus = 20 if 60 < mean < 200 else 0

    return (
        stats.entropy * 40
        + variance * 5
        + warmth_score(stats.means) * 2.5
        + saturation * 2.0
        + recency_boost
        + well_lit_bonus
        + brightness_penalty
    )


def select_best_frame(candidates: Sequence[Tuple[int, FrameStats]], total: int) -> Optional[int]:
    # 동점이면 먼저 나온 프레임 유지 (> 비교)
    best_index: Optional[int] = None
    best_score = float("-inf")
    for index, stats in candidates:
        score = score_frame(stats, index, total)
        if score > best_score:
            best_score = score
            best_index = index
    return best_index


# ---------------------------------------------------------------------
# ffmpeg / ffprobe
# ---------------------------------------------------------------------
async def _run(*args: str) -> bytes:
    proc = await asyncio.create_subprocess_exec(
        *args, stdout=asyncio.subprocess.PIPE, stderr=asyncio.subprocess.PIPE
    )
    out, err = await proc.communicate()
    if proc.returncode != 0:
        raise RuntimeError(f"{Path(args[0]).name} failed: {err.decode(errors='ignore')[-500:]}")
    return out


async def probe_duration(source: Path) -> float:
    out = await _run(
        settings.FFPROBE_PATH, "-v", "error",
        "-show_entries", "format=duration",
        "-of", "default=noprint_wrappers=1:nokey=1",
        str(source),
    )
    duration = float(out.decode().strip())
    if not duration > 0:
        raise ValueError(f"invalid video duration {duration!r}")
    return duration


async def extract_frames(source: Path, folder: Path) -> List[Optional[Path]]:
    """시점별 PNG 경로 목록 (추출 실패한 시점은 None). 길이 조회 실패는 예외."""
    duration = await probe_duration(source)
    frames: List[Optional[Path]] = []
    for i, position in enumerate(FRAME_POSITIONS, start=1):
        target = folder / f"frame-{i}.png"
        try:
            await _run(
                settings.FFMPEG_PATH, "-y", "-v", "error",
                "-ss", f"{duration * position:.3f}",
                "-i", str(source),
                "-frames:v", "1",
                "-vf", f"scale={settings.COVER_FRAME_WIDTH}:-2",
                str(target),
            )
        except (OSError, RuntimeError) as e:
            log.warning("frame %d extraction failed: %s", i, e)
            frames.append(None)
            continue
        frames.append(target if target.exists() else None)
    return frames


def _safe_ext(ext: Optional[str]) -> str:
    ext = re.sub(r"[^a-z0-9]", "", (ext or "").lower())
    return ext or "mp4"


async def capture_video_frame(data: bytes, ext: str = "mp4") -> Optional[str]:
    """영상 바이트 → 최고점 프레임 data URL (PNG). 전부 실패하면 None."""
    with tempfile.TemporaryDirectory(prefix="recipe-frames-") as tmp:
        folder = Path(tmp)
        source = folder / f"source.{_safe_ext(ext)}"
        source.write_bytes(data)
        try:
            frames = await extract_frames(source, folder)
        except (OSError, RuntimeError, ValueError) as e:
            log.warning("unable to extract frames for cover image: %s", e)
            return None

        candidates: List[Tuple[int, FrameStats]] = []
        images = {}
        for index, path in enumerate(frames, start=1):
            if path is None:
                continue
            try:
                png = path.read_bytes()
                with Image.open(io.BytesIO(png)) as img:
                    candidates.append((index, frame_stats(img)))
                images[index] = png
            except (OSError, ValueError) as e:
                log.warning("failed to process frame %d for cover image: %s", index, e)

        best = select_best_frame(candidates, len(frames))
        if best is None:
            return None
        return "data:image/png;base64," + base64.b64encode(images[best]).decode("ascii")
