"""QR code image rendering with qrcode and Pillow."""

import logging
from dataclasses import dataclass
from io import BytesIO

import qrcode
from PIL import Image, ImageDraw, ImageFont, ImageOps, UnidentifiedImageError

logger = logging.getLogger(__name__)

_QR_SIZE = 400
_BANNER_HEIGHT = 50
_OVERLAY_SIZE = 120
_AVATAR_COLOR = "#4f46e5"


@dataclass
class QrCodeRenderer:
    """Render a token as a QR code with a name banner and a round overlay."""

    qr_size: int = _QR_SIZE
    overlay_size: int = _OVERLAY_SIZE

    def render(self, payload: str, name: str, photo: bytes | None) -> bytes:
        """Return PNG bytes for the token image."""
        qr = qrcode.QRCode(
            error_correction=qrcode.constants.ERROR_CORRECT_H,
            box_size=10,
            border=2,
        )
        qr.add_data(payload)
        qr.make(fit=True)
        qr_image = (
            qr.make_image(fill_color="black", back_color="white")
            .convert("RGB")
            .resize((self.qr_size, self.qr_size))
        )

        canvas = Image.new(
            "RGB", (self.qr_size, self.qr_size + _BANNER_HEIGHT), "white"
        )
        draw = ImageDraw.Draw(canvas)
        font = ImageFont.load_default(size=28)
        if draw.textlength(name, font=font) > self.qr_size - 20:
            font = ImageFont.load_default(size=16)
        _draw_centered(draw, (0, 0, self.qr_size, _BANNER_HEIGHT), name, font, "black")
        canvas.paste(qr_image, (0, _BANNER_HEIGHT))

        overlay = self._overlay(name, photo)
        mask = Image.new("L", overlay.size, 0)
        ImageDraw.Draw(mask).ellipse(
            (0, 0, overlay.width - 1, overlay.height - 1), fill=255
        )
        x = (self.qr_size - overlay.width) // 2
        y = _BANNER_HEIGHT + (self.qr_size - overlay.height) // 2
        canvas.paste(overlay, (x, y), mask)

        out = BytesIO()
        canvas.save(out, format="PNG")
        return out.getvalue()

    def _overlay(self, name: str, photo: bytes | None) -> Image.Image:
        size = (self.overlay_size, self.overlay_size)
        if photo:
            try:
                with Image.open(BytesIO(photo)) as source:
                    return ImageOps.fit(source.convert("RGB"), size)
            except UnidentifiedImageError:
                logger.warning("Stored photo is not a readable image; using initials")
        avatar = Image.new("RGB", size, _AVATAR_COLOR)
        draw = ImageDraw.Draw(avatar)
        font = ImageFont.load_default(size=56)
        _draw_centered(draw, (0, 0, *size), initials(name), font, "white")
        return avatar


def initials(name: str) -> str:
    """Return up to two uppercase initials for a display name."""
    parts = [part for part in name.split() if part]
    return "".join(part[0] for part in parts)[:2].upper()


def _draw_centered(
    draw: ImageDraw.ImageDraw,
    box: tuple[int, int, int, int],
    text: str,
    font: ImageFont.ImageFont | ImageFont.FreeTypeFont,
    fill: str,
) -> None:
    left, top, right, bottom = draw.textbbox((0, 0), text, font=font)
    x = box[0] + (box[2] - box[0] - (right - left)) / 2 - left
    y = box[1] + (box[3] - box[1] - (bottom - top)) / 2 - top
    draw.text((x, y), text, font=font, fill=fill)
