"""
Live Color Hunting Pipeline
Classifies every pixel of a video frame against a target color, desaturates the
rest of the frame and outlines the matched regions.

Single-file module containing the per-frame classifier and the thin glue
(renderer, FPS counter, capture loop, result logging) around it.
"""

import cv2
import numpy as np
import os
import re
import sys
import math
import time
import argparse
import json
from collections import deque
from datetime import datetime
from enum import Enum
from typing import Tuple, Optional, List, Dict, Any, NamedTuple, Callable, Iterable, Union

# =============================================================================
# CONFIGURATION & PARAMETERS
# =============================================================================

class Config:
    """Configuration parameters for color hunting"""

    # Video source configuration
    # Switch between video file and camera based on environment variable or argument
    VIDEO_SOURCE = "demo.mp4"  # Default to demo video
    if os.getenv("RED_HUNTER_CAMERA") == "1":
        VIDEO_SOURCE = 0  # First camera index

    # Requested capture size (camera sources only, video files keep their size)
    FRAME_WIDTH = 1280
    FRAME_HEIGHT = 720

    # Default detection settings
    TARGET_COLOR = "#ff0000"    # Pure red
    HUE_TOLERANCE = 20          # Degrees either side of the target hue
    SATURATION_MIN = 0.4        # Washed-out pixels never match
    BRIGHTNESS_MIN = 0.3        # Dark pixels never match
    MATCH_THRESHOLD = 0.01      # 1% of the frame must match

    # Hues closer than this to 0/360 also get tested against the reflected target hue
    HUE_WRAP_MARGIN = 30

    # Outline heuristic
    EDGE_SAMPLE_STEP = 2        # Scan every 2nd row and column
    OUTLINE_BOX_SIZE = 3        # Stroke box centred on each edge cell

    # Rendering
    OUTLINE_COLOR = (255, 0, 0)  # RGB highlight for outlines and indicator
    OUTLINE_THICKNESS = 2
    GLOW_RADIUS = 5
    SHOW_FPS = True
    SHOW_MASK = False

    # Output configuration
    OUTPUT_CSV = False

    # Result logging configuration
    ENABLE_RESULT_LOGGING = True
    LOG_DIRECTORY = "hunting_results"
    MAX_FRAME_RECORDS = 100000  # per-frame entries kept for the JSON report

# =============================================================================
# ERRORS
# =============================================================================

class RedHunterError(Exception):
    """Base class for color hunting errors"""


class ShapeMismatch(RedHunterError, ValueError):
    """Pixel buffer is inconsistent with its declared width and height"""


class InvalidSettings(RedHunterError, ValueError):
    """A detection setting is outside its documented range"""

# =============================================================================
# COLOR MATH
# =============================================================================

class Color(NamedTuple):
    """8-bit RGB color"""
    r: int
    g: int
    b: int


class ColorHSV(NamedTuple):
    """Hue in degrees [0, 360), saturation and value in [0, 1]"""
    h: float
    s: float
    v: float


RED = Color(255, 0, 0)

_HEX_COLOR = re.compile(r"^#?([a-f\d]{2})([a-f\d]{2})([a-f\d]{2})$", re.IGNORECASE)


def parse_hex_color(hex_color: str) -> Color:
    """
    Parse a '#rrggbb' string (leading '#' optional).
    Malformed strings fall back to pure red, matching the color picker default.
    """
    match = _HEX_COLOR.match(hex_color.strip()) if isinstance(hex_color, str) else None
    if match is None:
        return RED
    return Color(*(int(part, 16) for part in match.groups()))


def rgb_to_hsv(r: int, g: int, b: int) -> ColorHSV:
    """
    Convert one 8-bit RGB color to HSV.

    Args:
        r, g, b: Channel values in 0-255

    Returns:
        ColorHSV with hue in [0, 360), saturation and value in [0, 1]
    """
    r, g, b = r / 255.0, g / 255.0, b / 255.0

    c_max = max(r, g, b)
    c_min = min(r, g, b)
    diff = c_max - c_min

    h = 0.0
    if diff != 0:
        if c_max == r:
            h = ((g - b) / diff) % 6
        elif c_max == g:
            h = (b - r) / diff + 2
        else:
            h = (r - g) / diff + 4
    h *= 60
    if h < 0:
        h += 360

    s = 0.0 if c_max == 0 else diff / c_max
    return ColorHSV(h, s, c_max)


def rgb_to_hsv_array(rgb: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Vectorised rgb_to_hsv over a whole frame.

    Args:
        rgb: (..., 3) array of 8-bit channel values in R, G, B order

    Returns:
        (hue, saturation, value) float arrays shaped like rgb[..., 0]
    """
    channels = rgb.astype(np.float64) / 255.0
    r, g, b = channels[..., 0], channels[..., 1], channels[..., 2]

    c_max = channels.max(axis=-1)
    c_min = channels.min(axis=-1)
    diff = c_max - c_min

    # Achromatic pixels get hue 0, divide by 1 there to keep the math finite
    safe_diff = np.where(diff == 0, 1.0, diff)
    hue = np.select(
        [diff == 0, c_max == r, c_max == g],
        [0.0, np.mod((g - b) / safe_diff, 6), (b - r) / safe_diff + 2],
        default=(r - g) / safe_diff + 4,
    ) * 60
    hue[hue < 0] += 360

    saturation = np.divide(diff, c_max, out=np.zeros_like(diff), where=c_max != 0)
    return hue, saturation, c_max


def hue_distance(hue_a, hue_b):
    """Circular distance between hues, always the shorter arc (scalar or array)"""
    diff = np.abs(np.asarray(hue_a, dtype=np.float64) - hue_b)
    diff = np.where(diff > 180, 360 - diff, diff)
    return float(diff) if diff.ndim == 0 else diff


def alternate_hue(target_hue: float) -> Optional[float]:
    """Target hue reflected across the 0/360 wrap, or None away from the wrap"""
    if target_hue < Config.HUE_WRAP_MARGIN or target_hue > 360 - Config.HUE_WRAP_MARGIN:
        return target_hue - 360 if target_hue > 180 else target_hue + 360
    return None


def hue_matches(pixel_hue, target_hue: float, tolerance: float):
    """
    Wrap-aware hue test.

    Red-like targets sit on both sides of 0/360, so near the wrap the pixel hue is
    additionally compared against the reflected target hue.

    Args:
        pixel_hue: Hue in degrees (scalar or array)
        target_hue: Target hue in degrees
        tolerance: Maximum distance in degrees

    Returns:
        bool (scalar input) or boolean array
    """
    pixel_hue = np.asarray(pixel_hue, dtype=np.float64)
    matched = hue_distance(pixel_hue, target_hue) <= tolerance

    alt_hue = alternate_hue(target_hue)
    if alt_hue is not None:
        matched = matched | (np.abs(pixel_hue - alt_hue) <= tolerance)

    return bool(matched) if np.ndim(matched) == 0 else matched


def luminance_gray(r, g, b):
    """
    Luminance-weighted gray level, rounded half up.
    Accepts scalars or arrays of 8-bit channel values.
    """
    gray = np.floor(0.299 * np.asarray(r, dtype=np.float64) + 0.587 * g + 0.114 * b + 0.5)
    return int(gray) if gray.ndim == 0 else gray.astype(np.uint8)

# =============================================================================
# DETECTION SETTINGS
# =============================================================================

def _fraction(name: str, value) -> float:
    value = _finite(name, value)
    if not 0.0 <= value <= 1.0:
        raise InvalidSettings(f"{name} must be within [0, 1], got {value}")
    return value


def _finite(name: str, value) -> float:
    try:
        value = float(value)
    except (TypeError, ValueError):
        raise InvalidSettings(f"{name} must be a number, got {value!r}") from None
    if not math.isfinite(value):
        raise InvalidSettings(f"{name} must be finite, got {value}")
    return value


def _hue_tolerance(name: str, value) -> float:
    value = _finite(name, value)
    if not 0.0 <= value <= 360.0:
        raise InvalidSettings(f"{name} must be within [0, 360] degrees, got {value}")
    return value


def _color(name: str, value) -> Color:
    if isinstance(value, str):
        return parse_hex_color(value)
    try:
        channels = tuple(value)
    except TypeError:
        raise InvalidSettings(f"{name} must be a hex string or an (r, g, b) triple, got {value!r}") from None
    if len(channels) != 3:
        raise InvalidSettings(f"{name} needs exactly 3 channels, got {len(channels)}")
    for channel in channels:
        if (isinstance(channel, bool) or not isinstance(channel, (int, float, np.integer))
                or not math.isfinite(channel) or int(channel) != channel or not 0 <= channel <= 255):
            raise InvalidSettings(f"{name} channels must be integers in 0-255, got {channels}")
    return Color(*(int(channel) for channel in channels))


class DetectionSettings:
    """
    Tunable detection parameters, owned by the caller and passed into every
    FrameClassifier.classify call.

    All changes go through update(), which validates every field before applying
    any of them and recomputes the cached target hue when the target color changes.
    """

    _VALIDATORS = {
        'target_color': _color,
        'hue_tolerance': _hue_tolerance,
        'saturation_min': _fraction,
        'brightness_min': _fraction,
        'match_threshold': _fraction,
    }

    def __init__(self, target_color=None, hue_tolerance=None, saturation_min=None,
                 brightness_min=None, match_threshold=None):
        self._target_color = RED
        self._target_hue = 0.0
        self.hue_tolerance = float(Config.HUE_TOLERANCE)
        self.saturation_min = float(Config.SATURATION_MIN)
        self.brightness_min = float(Config.BRIGHTNESS_MIN)
        self.match_threshold = float(Config.MATCH_THRESHOLD)

        requested = {
            'target_color': Config.TARGET_COLOR if target_color is None else target_color,
            'hue_tolerance': hue_tolerance,
            'saturation_min': saturation_min,
            'brightness_min': brightness_min,
            'match_threshold': match_threshold,
        }
        self.update(**{name: value for name, value in requested.items() if value is not None})

    @property
    def target_color(self) -> Color:
        return self._target_color

    @property
    def target_hue(self) -> float:
        """Hue of target_color, derived once per color change"""
        return self._target_hue

    def update(self, **changes) -> None:
        """
        Apply setting changes atomically.

        Raises:
            InvalidSettings: unknown field, non-finite number or value out of range.
                Nothing is applied in that case.
        """
        validated = {}
        for name, value in changes.items():
            validator = self._VALIDATORS.get(name)
            if validator is None:
                raise InvalidSettings(f"Unknown setting: {name}")
            validated[name] = validator(name, value)

        for name, value in validated.items():
            if name == 'target_color':
                self._target_color = value
                self._target_hue = rgb_to_hsv(*value).h
            else:
                setattr(self, name, value)

    def as_dict(self) -> Dict[str, Any]:
        r, g, b = self._target_color
        return {
            'target_color': f"#{r:02x}{g:02x}{b:02x}",
            'target_hue': self._target_hue,
            'hue_tolerance': self.hue_tolerance,
            'saturation_min': self.saturation_min,
            'brightness_min': self.brightness_min,
            'match_threshold': self.match_threshold,
        }

    def __repr__(self):
        fields = ", ".join(f"{key}={value!r}" for key, value in self.as_dict().items())
        return f"DetectionSettings({fields})"

# =============================================================================
# FRAME CLASSIFIER
# =============================================================================

OutlineRect = Tuple[int, int, int, int]  # (x, y, w, h)

PixelBuffer = Union[np.ndarray, bytearray, bytes, memoryview]


class ClassificationResult(NamedTuple):
    buffer: np.ndarray              # (H, W, C) frame, non-matching pixels desaturated
    mask: np.ndarray                # (H, W) uint8, 1 where the pixel matched
    match_ratio: float
    detected: bool
    outline_rects: List[OutlineRect]
    matching_pixels: int
    total_pixels: int


class FrameClassifier:
    """
    Per-frame color matcher.

    One vectorised pass converts every pixel to HSV, tests it against the target,
    writes the match mask and desaturates the non-matching pixels in place. A
    second pass scans the mask on a subsampled grid for boundary cells to outline.
    """

    CHANNEL_ORDERS = {'RGB': (0, 1, 2), 'BGR': (2, 1, 0)}

    def __init__(self, channel_order: str = 'RGB', edge_step: int = Config.EDGE_SAMPLE_STEP,
                 outline_size: int = Config.OUTLINE_BOX_SIZE):
        channel_order = channel_order.upper()
        if channel_order not in self.CHANNEL_ORDERS:
            raise ValueError(f"channel_order must be one of {sorted(self.CHANNEL_ORDERS)}, got {channel_order!r}")
        if edge_step < 1:
            raise ValueError(f"edge_step must be >= 1, got {edge_step}")
        self.channel_order = channel_order
        self.edge_step = edge_step
        self.outline_size = outline_size
        self._rgb_index = list(self.CHANNEL_ORDERS[channel_order])

    def as_frame(self, buffer: PixelBuffer, width: Optional[int] = None,
                 height: Optional[int] = None) -> np.ndarray:
        """
        View a pixel buffer as an (H, W, C) uint8 array without copying.

        Read-only buffers are copied once so the classifier can still desaturate them.

        Raises:
            ShapeMismatch: buffer length or shape disagrees with width/height, or the
                pixels carry fewer than 3 or more than 4 channels
        """
        if isinstance(buffer, np.ndarray) and buffer.ndim == 3:
            frame = buffer
            frame_height, frame_width, channels = frame.shape
            if width is not None and width != frame_width:
                raise ShapeMismatch(f"declared width {width} but frame is {frame_width} pixels wide")
            if height is not None and height != frame_height:
                raise ShapeMismatch(f"declared height {height} but frame is {frame_height} pixels tall")
        elif isinstance(buffer, np.ndarray) and buffer.ndim != 1:
            raise ShapeMismatch(f"expected an (H, W, C) frame or a flat buffer, got shape {buffer.shape}")
        else:
            if width is None or height is None:
                raise ShapeMismatch("flat pixel buffers need a declared width and height")
            if width <= 0 or height <= 0:
                raise ShapeMismatch(f"frame size must be positive, got {width}x{height}")
            flat = buffer if isinstance(buffer, np.ndarray) else np.frombuffer(buffer, dtype=np.uint8)
            pixel_count = width * height
            if flat.size % pixel_count != 0:
                raise ShapeMismatch(f"buffer of {flat.size} bytes does not hold {width}x{height} pixels")
            channels = flat.size // pixel_count
            frame = flat.reshape(height, width, channels) if channels in (3, 4) else flat

        if frame.ndim != 3 or frame.shape[2] not in (3, 4):
            raise ShapeMismatch(f"pixels need 3 or 4 channels, got shape {frame.shape}")
        if frame.shape[0] == 0 or frame.shape[1] == 0:
            raise ShapeMismatch(f"empty frame {frame.shape[1]}x{frame.shape[0]}")
        if frame.dtype != np.uint8:
            raise ShapeMismatch(f"pixels must be 8-bit, got dtype {frame.dtype}")

        if not frame.flags.writeable:
            frame = frame.copy()
        return frame

    def compute_mask(self, rgb: np.ndarray, settings: DetectionSettings) -> np.ndarray:
        """
        Boolean match mask for an (H, W, 3) array in R, G, B order.
        A pixel matches when its hue is within tolerance of the target hue and it
        is saturated and bright enough.
        """
        hue, saturation, value = rgb_to_hsv_array(rgb)
        return (hue_matches(hue, settings.target_hue, settings.hue_tolerance)
                & (saturation >= settings.saturation_min)
                & (value >= settings.brightness_min))

    def find_edges(self, mask: np.ndarray) -> List[OutlineRect]:
        """
        Outline rects for boundary cells of the mask.

        Only cells on the sampling grid are considered. A matched cell is a boundary
        cell when any of its 4 direct neighbours is unmatched or out of the frame.

        Args:
            mask: (H, W) array, non-zero where matched

        Returns:
            (x, y, w, h) rects centred on each boundary cell, row-major order
        """
        matched = mask.astype(bool)
        padded = np.pad(matched, 1, mode='constant', constant_values=False)
        enclosed = (padded[:-2, 1:-1] & padded[2:, 1:-1]
                    & padded[1:-1, :-2] & padded[1:-1, 2:])
        edges = matched & ~enclosed

        step = self.edge_step
        rows, cols = np.nonzero(edges[::step, ::step])
        offset = self.outline_size // 2
        size = self.outline_size
        return [(int(x) * step - offset, int(y) * step - offset, size, size)
                for y, x in zip(rows, cols)]

    def classify(self, buffer: PixelBuffer, settings: DetectionSettings,
                 width: Optional[int] = None, height: Optional[int] = None) -> ClassificationResult:
        """
        Classify one frame against the current settings.

        Args:
            buffer: (H, W, C) uint8 frame or flat buffer of W*H*C bytes, C in {3, 4}.
                Non-matching pixels are overwritten with their gray level in place;
                channels past the third (alpha) are left alone.
            settings: Detection settings, read once at the start of the call
            width, height: Declared frame size (required for flat buffers)

        Returns:
            ClassificationResult with the desaturated frame, mask, ratio and outlines

        Raises:
            ShapeMismatch: malformed buffer, raised before any pixel is modified
        """
        frame = self.as_frame(buffer, width, height)

        rgb = frame[..., self._rgb_index]
        matched = self.compute_mask(rgb, settings)

        # Selective desaturation, same gray written to all three color channels
        unmatched = ~matched
        gray = luminance_gray(rgb[..., 0][unmatched], rgb[..., 1][unmatched], rgb[..., 2][unmatched])
        color_view = frame[..., :3]
        color_view[unmatched] = gray[:, np.newaxis]

        mask = matched.astype(np.uint8)
        outline_rects = self.find_edges(mask)

        matching_pixels = int(np.count_nonzero(matched))
        total_pixels = int(matched.size)
        match_ratio = matching_pixels / total_pixels

        return ClassificationResult(
            buffer=frame,
            mask=mask,
            match_ratio=match_ratio,
            detected=match_ratio >= settings.match_threshold,
            outline_rects=outline_rects,
            matching_pixels=matching_pixels,
            total_pixels=total_pixels,
        )

# =============================================================================
# RENDERING
# =============================================================================

class OutlineRenderer:
    """
    Draws classifier output for display: glowing outline strokes, a detection
    indicator and an optional FPS readout. Draws in place on result.buffer.
    """

    def __init__(self, channel_order: str = 'BGR', color: Tuple[int, int, int] = Config.OUTLINE_COLOR,
                 thickness: int = Config.OUTLINE_THICKNESS, glow_radius: int = Config.GLOW_RADIUS):
        self.channel_order = channel_order.upper()
        self.color = tuple(color)
        self.thickness = thickness
        self.glow_radius = glow_radius

    def _scalar(self, channels: int, alpha: int = 255) -> Tuple[int, ...]:
        """Highlight color in the buffer's channel order"""
        r, g, b = self.color
        color = (b, g, r) if self.channel_order == 'BGR' else (r, g, b)
        return color + (alpha,) if channels == 4 else color

    def _stroke(self, canvas: np.ndarray, rects: List[OutlineRect], color: Tuple[int, ...]):
        for x, y, w, h in rects:
            cv2.rectangle(canvas, (x, y), (x + w - 1, y + h - 1), color, self.thickness)

    def draw_outlines(self, frame: np.ndarray, rects: List[OutlineRect]) -> np.ndarray:
        if not rects:
            return frame
        channels = frame.shape[2]

        if self.glow_radius > 0:
            glow = np.zeros_like(frame)
            self._stroke(glow, rects, self._scalar(channels, alpha=0))
            kernel = 2 * self.glow_radius + 1
            cv2.GaussianBlur(glow, (kernel, kernel), 0, dst=glow)
            cv2.add(frame, glow, dst=frame)

        self._stroke(frame, rects, self._scalar(channels))
        return frame

    def draw_indicator(self, frame: np.ndarray, detected: bool, match_ratio: float) -> np.ndarray:
        if not detected:
            return frame
        color = self._scalar(frame.shape[2])
        width = frame.shape[1]
        cv2.circle(frame, (width - 24, 24), 12, color, -1)
        label = f"DETECTED {match_ratio * 100:.1f}%"
        text_size = cv2.getTextSize(label, cv2.FONT_HERSHEY_SIMPLEX, 0.6, 2)[0]
        cv2.putText(frame, label, (max(width - 44 - text_size[0], 0), 30),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.6, color, 2)
        return frame

    def draw_fps(self, frame: np.ndarray, fps: int) -> np.ndarray:
        white = (255, 255, 255, 255) if frame.shape[2] == 4 else (255, 255, 255)
        cv2.putText(frame, f"FPS: {fps}", (10, frame.shape[0] - 10),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.5, white, 1)
        return frame

    def render(self, result: ClassificationResult, fps: Optional[int] = None) -> np.ndarray:
        """
        Draw outlines, indicator and FPS onto the classified frame.

        Returns:
            result.buffer, annotated in place
        """
        frame = result.buffer
        self.draw_outlines(frame, result.outline_rects)
        self.draw_indicator(frame, result.detected, result.match_ratio)
        if fps is not None:
            self.draw_fps(frame, fps)
        return frame

# =============================================================================
# FPS COUNTER
# =============================================================================

class FpsCounter:
    """Counts frames and publishes the count once per elapsed second"""

    def __init__(self, clock: Callable[[], float] = time.time):
        self.clock = clock
        self.frame_count = 0
        self.last_fps_time = clock()
        self.fps = 0

    def tick(self) -> bool:
        """Count one frame. Returns True when a new FPS value was published."""
        self.frame_count += 1
        now = self.clock()
        if now - self.last_fps_time >= 1.0:
            self.fps = self.frame_count
            self.frame_count = 0
            self.last_fps_time = now
            return True
        return False

# =============================================================================
# RESULT LOGGING CLASS
# =============================================================================

class ResultLogger:
    """
    Result logging for color hunting sessions.
    Collects per-frame detection data and writes a summary and a JSON report.
    Session statistics cover every frame; only the most recent max_frame_records
    per-frame entries are kept for the JSON report.
    """

    def __init__(self, video_source: str, log_directory: str = None,
                 max_frame_records: int = None):
        self.video_source = video_source
        self.log_directory = log_directory or Config.LOG_DIRECTORY
        self.session_start = datetime.now()
        self.frame_data = deque(maxlen=max_frame_records or Config.MAX_FRAME_RECORDS)
        self.session_stats = {
            'total_frames': 0,
            'frames_detected': 0,
            'max_match_ratio': 0.0,
            'total_match_ratio': 0.0,
            'detection_sessions': [],
            'avg_fps': 0,
            'processing_time': 0
        }
        self.current_detection = None

        os.makedirs(self.log_directory, exist_ok=True)

    def log_frame(self, frame_num: int, match_ratio: float, detected: bool,
                  outline_count: int, fps: float):
        """Log data for a single frame"""
        self.frame_data.append({
            'frame': frame_num,
            'timestamp': time.time(),
            'match_ratio': match_ratio,
            'detected': detected,
            'outline_count': outline_count,
            'fps': fps
        })

        self.session_stats['total_frames'] = frame_num
        self.session_stats['total_match_ratio'] += match_ratio
        self.session_stats['max_match_ratio'] = max(self.session_stats['max_match_ratio'], match_ratio)

        if detected:
            self.session_stats['frames_detected'] += 1
            if self.current_detection is None:
                self.current_detection = {
                    'start_frame': frame_num,
                    'duration': 1,
                    'peak_match_ratio': match_ratio
                }
            else:
                self.current_detection['duration'] += 1
                self.current_detection['peak_match_ratio'] = max(
                    self.current_detection['peak_match_ratio'], match_ratio
                )
        elif self.current_detection is not None:
            self.current_detection['end_frame'] = frame_num - 1
            self.session_stats['detection_sessions'].append(self.current_detection)
            self.current_detection = None

    def finalize_session(self, final_fps: float, settings: Optional[DetectionSettings] = None) -> List[str]:
        """
        Close the session and write the reports.

        Returns:
            Paths of the written report files
        """
        if self.current_detection is not None:
            self.current_detection['end_frame'] = self.session_stats['total_frames']
            self.session_stats['detection_sessions'].append(self.current_detection)
            self.current_detection = None

        self.session_stats['avg_fps'] = final_fps
        self.session_stats['processing_time'] = (datetime.now() - self.session_start).total_seconds()

        settings_dict = settings.as_dict() if settings is not None else {}
        paths = [
            self._generate_summary_report(settings_dict),
            self._generate_json_report(settings_dict),
        ]

        print(f"\nHunting results saved to: {self.log_directory}/")
        return paths

    def _report_path(self, suffix: str) -> str:
        timestamp = self.session_start.strftime("%Y%m%d_%H%M%S")
        return os.path.join(self.log_directory, f"{timestamp}_{suffix}")

    def _generate_summary_report(self, settings_dict: Dict[str, Any]) -> str:
        """Generate a human-readable summary report"""
        filename = self._report_path("hunting_summary.txt")
        stats = self.session_stats

        with open(filename, 'w') as f:
            f.write("=" * 60 + "\n")
            f.write("COLOR HUNTING SESSION SUMMARY\n")
            f.write("=" * 60 + "\n\n")

            f.write(f"Session Start: {self.session_start.strftime('%Y-%m-%d %H:%M:%S')}\n")
            f.write(f"Video Source: {self.video_source}\n")
            f.write(f"Processing Time: {stats['processing_time']:.2f} seconds\n")
            f.write(f"Average FPS: {stats['avg_fps']:.1f}\n\n")

            f.write("FRAME STATISTICS:\n")
            f.write("-" * 20 + "\n")
            f.write(f"Total Frames Processed: {stats['total_frames']}\n")
            f.write(f"Frames with Detection: {stats['frames_detected']}\n")

            if stats['total_frames'] > 0:
                detection_rate = stats['frames_detected'] / stats['total_frames'] * 100
                mean_ratio = stats['total_match_ratio'] / stats['total_frames'] * 100
                f.write(f"Detection Rate: {detection_rate:.1f}%\n")
                f.write(f"Mean Matching Pixels: {mean_ratio:.2f}%\n")
            f.write(f"Peak Matching Pixels: {stats['max_match_ratio'] * 100:.2f}%\n\n")

            f.write("DETECTION SESSIONS:\n")
            f.write("-" * 19 + "\n")
            f.write(f"Number of Detection Sessions: {len(stats['detection_sessions'])}\n")
            for i, session in enumerate(stats['detection_sessions'], 1):
                f.write(f"Session {i}: frames {session['start_frame']} - {session.get('end_frame', 'ongoing')}, "
                        f"{session['duration']} frames, peak {session['peak_match_ratio'] * 100:.2f}%\n")
            f.write("\n")

            if settings_dict:
                f.write("SETTINGS USED:\n")
                f.write("-" * 14 + "\n")
                for key, value in settings_dict.items():
                    f.write(f"{key}: {value}\n")

        print(f"Summary report saved: {filename}")
        return filename

    def _generate_json_report(self, settings_dict: Dict[str, Any]) -> str:
        """Generate a machine-readable JSON report"""
        filename = self._report_path("hunting_data.json")

        report_data = {
            'session_info': {
                'start_time': self.session_start.isoformat(),
                'video_source': self.video_source,
                'processing_time_seconds': self.session_stats['processing_time'],
                'average_fps': self.session_stats['avg_fps']
            },
            'statistics': self.session_stats,
            'settings': settings_dict,
            'frame_data': list(self.frame_data)
        }

        with open(filename, 'w') as f:
            json.dump(report_data, f, indent=2)

        print(f"JSON data saved: {filename}")
        return filename

# =============================================================================
# DETECTION LOOP
# =============================================================================

class LoopState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


def iter_capture(cap) -> Iterable[np.ndarray]:
    """Yield frames from a cv2.VideoCapture until a read fails"""
    while True:
        ret, frame = cap.read()
        if not ret:
            return
        yield frame


class DetectionLoop:
    """
    Cooperative single-threaded frame loop: take the next frame, classify it,
    hand the result to on_result, then go back for the next one. At most one
    classification is in flight and the loop only runs between start() and stop().

    width and height declare the frame size for sources that yield flat pixel
    buffers; array frames carry their own shape.
    """

    def __init__(self, classifier: FrameClassifier, settings: DetectionSettings,
                 on_result: Optional[Callable[[ClassificationResult, 'DetectionLoop'], None]] = None,
                 result_logger: Optional[ResultLogger] = None,
                 fps_counter: Optional[FpsCounter] = None,
                 width: Optional[int] = None, height: Optional[int] = None):
        self.classifier = classifier
        self.settings = settings
        self.on_result = on_result
        self.result_logger = result_logger
        self.fps_counter = fps_counter or FpsCounter()
        self.width = width
        self.height = height
        self.state = LoopState.IDLE
        self.frame_count = 0
        self.skipped_frames = 0
        self.last_result = None

    @property
    def running(self) -> bool:
        return self.state is LoopState.RUNNING

    def start(self):
        self.state = LoopState.RUNNING

    def stop(self):
        self.state = LoopState.STOPPED

    def step(self, frame: PixelBuffer, width: Optional[int] = None,
             height: Optional[int] = None) -> Optional[ClassificationResult]:
        """
        Process one frame while running. width/height default to the loop's
        declared frame size.

        Returns:
            The classification result, or None when the loop is not running or the
            frame was skipped for a shape mismatch
        """
        if not self.running:
            return None

        if width is None:
            width = self.width
        if height is None:
            height = self.height

        try:
            result = self.classifier.classify(frame, self.settings, width, height)
        except ShapeMismatch as e:
            self.skipped_frames += 1
            # Position in the source stream, counting earlier skips
            print(f"Skipping frame {self.frame_count + self.skipped_frames}: {e}")
            return None

        self.frame_count += 1
        self.fps_counter.tick()
        self.last_result = result

        if Config.OUTPUT_CSV:
            print(f"{self.frame_count},{result.match_ratio:.6f},{int(result.detected)},{len(result.outline_rects)}")

        if self.result_logger:
            self.result_logger.log_frame(
                self.frame_count, result.match_ratio, result.detected,
                len(result.outline_rects), self.fps_counter.fps
            )

        if self.on_result:
            self.on_result(result, self)

        return result

    def run(self, frame_source, max_frames: Optional[int] = None) -> int:
        """
        Pull frames until the source runs dry, stop() is called or max_frames
        frames were processed.

        Args:
            frame_source: Iterable of frames, or an object with a cv2-style read()
            max_frames: Optional cap on processed frames

        Returns:
            Number of frames processed during this run
        """
        if hasattr(frame_source, 'read'):
            frame_source = iter_capture(frame_source)

        self.start()
        processed = 0
        for frame in frame_source:
            if self.step(frame) is not None:
                processed += 1
            if not self.running:
                break
            if max_frames is not None and processed >= max_frames:
                break
        self.stop()
        return processed

# =============================================================================
# MAIN APPLICATION
# =============================================================================

def build_settings(args) -> DetectionSettings:
    return DetectionSettings(
        target_color=args.color,
        hue_tolerance=args.hue_tolerance,
        saturation_min=args.saturation_min,
        brightness_min=args.brightness_min,
        match_threshold=args.threshold,
    )


def parse_source(source: str):
    """Camera index for digit strings, file path otherwise"""
    return int(source) if source.isdigit() else source


def main(argv=None):
    """Main application entry point"""
    parser = argparse.ArgumentParser(description='Live color hunter')
    parser.add_argument('--source', type=str, help='Video source (file path or camera index)')
    parser.add_argument('--camera', action='store_true', help='Use camera instead of video file')
    parser.add_argument('--color', type=str, default=Config.TARGET_COLOR, help='Target color as #rrggbb')
    parser.add_argument('--hue-tolerance', type=float, default=Config.HUE_TOLERANCE, help='Hue tolerance in degrees (0-360)')
    parser.add_argument('--saturation-min', type=float, default=Config.SATURATION_MIN, help='Minimum saturation (0-1)')
    parser.add_argument('--brightness-min', type=float, default=Config.BRIGHTNESS_MIN, help='Minimum brightness (0-1)')
    parser.add_argument('--threshold', type=float, default=Config.MATCH_THRESHOLD, help='Fraction of matching pixels for a detection (0-1)')
    parser.add_argument('--max-frames', type=int, help='Stop after this many frames')
    parser.add_argument('--csv', action='store_true', help='Output CSV detection data')
    parser.add_argument('--no-display', action='store_true', help='Run without display (headless)')
    parser.add_argument('--no-logging', action='store_true', help='Disable result logging')

    args = parser.parse_args(argv)

    try:
        settings = build_settings(args)
    except InvalidSettings as e:
        parser.error(str(e))

    if args.source:
        Config.VIDEO_SOURCE = parse_source(args.source)
    elif args.camera:
        Config.VIDEO_SOURCE = 0

    if args.csv:
        Config.OUTPUT_CSV = True
        print("frame,match_ratio,detected,outlines")  # CSV header

    if args.no_logging:
        Config.ENABLE_RESULT_LOGGING = False

    # Step 1: Initialize VideoCapture
    cap = cv2.VideoCapture(Config.VIDEO_SOURCE)
    if isinstance(Config.VIDEO_SOURCE, str):
        print(f"Opening video file: {Config.VIDEO_SOURCE}")
    else:
        print(f"Opening camera: {Config.VIDEO_SOURCE}")

    if not cap.isOpened():
        print("Error: Could not open video source")
        return 1

    if isinstance(Config.VIDEO_SOURCE, str):
        frame_count = cap.get(cv2.CAP_PROP_FRAME_COUNT)
        fps = cap.get(cv2.CAP_PROP_FPS)
        width = cap.get(cv2.CAP_PROP_FRAME_WIDTH)
        height = cap.get(cv2.CAP_PROP_FRAME_HEIGHT)
        print(f"Video properties: {frame_count} frames, {fps} FPS, {width}x{height}")
    else:
        cap.set(cv2.CAP_PROP_FRAME_WIDTH, Config.FRAME_WIDTH)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, Config.FRAME_HEIGHT)

    # Step 2: Initialize result logger
    result_logger = None
    if Config.ENABLE_RESULT_LOGGING:
        result_logger = ResultLogger(str(Config.VIDEO_SOURCE))
        print(f"Result logging enabled. Results will be saved to: {Config.LOG_DIRECTORY}/")

    # Step 3: Wire classifier, renderer and loop
    classifier = FrameClassifier(channel_order='BGR')
    renderer = OutlineRenderer(channel_order='BGR')

    def on_result(result: ClassificationResult, loop: DetectionLoop):
        if args.no_display:
            return

        frame = renderer.render(result, loop.fps_counter.fps if Config.SHOW_FPS else None)
        cv2.imshow("Red Hunter - Main View", frame)
        if Config.SHOW_MASK:
            cv2.imshow("Red Hunter - Color Mask", result.mask * 255)

        key = cv2.waitKey(1) & 0xFF
        if key == ord('q'):
            loop.stop()
        elif key == ord('s'):
            filename = f"frame_{loop.frame_count:06d}.jpg"
            cv2.imwrite(filename, frame)
            print(f"Saved frame: {filename}")
        elif key == ord('m'):
            Config.SHOW_MASK = not Config.SHOW_MASK
            if not Config.SHOW_MASK:
                cv2.destroyWindow("Red Hunter - Color Mask")

    loop = DetectionLoop(classifier, settings, on_result, result_logger)

    if not args.no_display:
        cv2.namedWindow("Red Hunter - Main View", cv2.WINDOW_NORMAL)

    print("Red Hunter started.")
    print("Controls: 'q'=quit, 's'=save frame, 'm'=toggle mask view")
    print(f"Target: {settings.as_dict()['target_color']} (hue {settings.target_hue:.1f}, "
          f"tolerance {settings.hue_tolerance:g} degrees)")
    print(f"Detection threshold: {settings.match_threshold * 100:g}% of the frame")
    print(f"Result logging: {'ON' if Config.ENABLE_RESULT_LOGGING else 'OFF'}")

    # Step 4: Main processing loop
    try:
        processed = loop.run(cap, args.max_frames)
        print(f"Processed {processed} frames ({loop.skipped_frames} skipped)")
    except KeyboardInterrupt:
        print("\nInterrupted by user")
    finally:
        loop.stop()
        if result_logger:
            result_logger.finalize_session(loop.fps_counter.fps, settings)
        cap.release()
        if not args.no_display:
            cv2.destroyAllWindows()
        print("Red Hunter stopped")

    return 0

if __name__ == "__main__":
    sys.exit(main())
