from __future__ import annotations

import uuid
from io import BytesIO

import numpy as np
from PIL import Image, UnidentifiedImageError

from src.domain.entities.snapshot import ImageSnapshot, MaskArtifact
from src.domain.entities.viewport import Rect
from src.domain.errors import EditValidationError, ImageDecodeError

EXPANSION_ASPECTS: dict[str, float] = {
    "16:9": 16 / 9,
    "4:3": 4 / 3,
    "1:1": 1.0,
    "3:2": 3 / 2,
}
ASPECT_TOLERANCE = 0.01


class ProcessingService:
    """Local image codec and compositing steps around the external edit calls.

    Snapshots carry encoded bytes; everything here decodes with Pillow, works on
    the decoded image and re-encodes as PNG. Nothing in this class suspends.
    """

    @staticmethod
    def decode(data: bytes, name: str) -> ImageSnapshot:
        if not data:
            raise ImageDecodeError(f"{name}: empty image data")
        try:
            with Image.open(BytesIO(data)) as img:
                img.load()
                width, height = img.size
                mime = Image.MIME.get(img.format or "", "image/png")
        except (UnidentifiedImageError, OSError) as exc:
            raise ImageDecodeError(f"{name}: could not decode image ({exc})") from exc
        return ImageSnapshot(
            id=uuid.uuid4().hex,
            name=name,
            data=bytes(data),
            mime_type=mime,
            width=width,
            height=height,
        )

    @staticmethod
    def to_pil(snapshot: ImageSnapshot) -> Image.Image:
        img = Image.open(BytesIO(snapshot.data))
        img.load()
        return img

    @staticmethod
    def encode_png(img: Image.Image) -> bytes:
        buf = BytesIO()
        img.save(buf, format="PNG")
        return buf.getvalue()

    @staticmethod
    def from_pil(img: Image.Image, name: str) -> ImageSnapshot:
        return ProcessingService.decode(ProcessingService.encode_png(img), name)

    # Hard crop. The selection is in displayed-image coordinates; the source
    # region is scaled by native/displayed and the output canvas is the display
    # size multiplied by the device pixel ratio.
    @staticmethod
    def crop(
        snapshot: ImageSnapshot,
        selection: Rect,
        displayed_size: tuple[int, int],
        device_pixel_ratio: float = 1.0,
        name: str = "cropped.png",
    ) -> ImageSnapshot:
        disp_w, disp_h = displayed_size
        if disp_w <= 0 or disp_h <= 0:
            raise EditValidationError("Displayed image size must be positive.")
        selection = ProcessingService.clamp_rect(selection, disp_w, disp_h)
        if selection.is_empty:
            raise EditValidationError("Please select an area to crop.")
        ratio = float(device_pixel_ratio) if device_pixel_ratio and device_pixel_ratio > 0 else 1.0

        scale_x = snapshot.width / disp_w
        scale_y = snapshot.height / disp_h
        box = (
            selection.x * scale_x,
            selection.y * scale_y,
            (selection.x + selection.width) * scale_x,
            (selection.y + selection.height) * scale_y,
        )
        out_w = max(1, round(selection.width * ratio))
        out_h = max(1, round(selection.height * ratio))

        src = ProcessingService.to_pil(snapshot)
        if src.mode not in ("RGB", "RGBA"):
            src = src.convert("RGBA")
        out = src.resize((out_w, out_h), resample=Image.Resampling.LANCZOS, box=box)
        return ProcessingService.from_pil(out, name)

    @staticmethod
    def clamp_rect(rect: Rect, width: float, height: float) -> Rect:
        x0 = min(max(rect.x, 0.0), width)
        y0 = min(max(rect.y, 0.0), height)
        x1 = min(max(rect.x + rect.width, 0.0), width)
        y1 = min(max(rect.y + rect.height, 0.0), height)
        return Rect(x0, y0, x1 - x0, y1 - y0)

    # Smallest canvas with the requested aspect ratio that still contains the
    # original image.
    @staticmethod
    def expansion_target(width: int, height: int, aspect: float) -> tuple[int, int]:
        if aspect <= 0:
            raise EditValidationError("Target aspect ratio must be positive.")
        current = width / height
        if abs(current - aspect) < ASPECT_TOLERANCE:
            raise EditValidationError("The image already has this aspect ratio.")
        if aspect > current:
            return max(width, round(height * aspect)), height
        return width, max(height, round(width / aspect))

    # Center the original on a transparent canvas of the target size. When the
    # target exceeds max_side both are scaled down by the same factor.
    @staticmethod
    def pad_for_expansion(
        snapshot: ImageSnapshot, target_w: int, target_h: int, max_side: int = 2048
    ) -> tuple[bytes, int, int]:
        if target_w < snapshot.width or target_h < snapshot.height:
            raise EditValidationError("Expanded canvas must contain the original image.")
        scale = min(1.0, max_side / max(target_w, target_h))
        canvas_w = max(1, round(target_w * scale))
        canvas_h = max(1, round(target_h * scale))

        src = ProcessingService.to_pil(snapshot).convert("RGBA")
        if scale < 1.0:
            src = src.resize(
                (max(1, round(src.width * scale)), max(1, round(src.height * scale))),
                resample=Image.Resampling.LANCZOS,
            )
        canvas = Image.new("RGBA", (canvas_w, canvas_h), (0, 0, 0, 0))
        offset = ((canvas_w - src.width) // 2, (canvas_h - src.height) // 2)
        canvas.paste(src, offset)
        return ProcessingService.encode_png(canvas), canvas_w, canvas_h

    # Collaborator output whose size differs from what was requested is
    # resampled to the requested size.
    @staticmethod
    def conform(data: bytes, width: int, height: int, name: str) -> tuple[ImageSnapshot, bool]:
        snapshot = ProcessingService.decode(data, name)
        if snapshot.size == (width, height):
            return snapshot, False
        img = ProcessingService.to_pil(snapshot)
        if img.mode not in ("RGB", "RGBA"):
            img = img.convert("RGBA")
        resized = img.resize((width, height), resample=Image.Resampling.LANCZOS)
        return ProcessingService.from_pil(resized, name), True

    # Nearest-neighbour so the mask stays strictly black and white.
    @staticmethod
    def resize_mask(mask: MaskArtifact, width: int, height: int) -> MaskArtifact:
        if (mask.width, mask.height) == (width, height):
            return mask
        try:
            with Image.open(BytesIO(mask.data)) as img:
                resized = img.convert("L").resize((width, height), resample=Image.Resampling.NEAREST)
        except (UnidentifiedImageError, OSError) as exc:
            raise ImageDecodeError(f"mask: could not decode image ({exc})") from exc
        binary = np.where(np.asarray(resized) >= 128, 255, 0).astype(np.uint8)
        out = Image.fromarray(binary).convert("RGB")
        return MaskArtifact(data=ProcessingService.encode_png(out), width=width, height=height)
