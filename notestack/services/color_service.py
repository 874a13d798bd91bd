import re

from sqlalchemy.orm import Session

from notestack.errors import ValidationError
from notestack.models.color import Color

HEX_RE = re.compile(r"^#[0-9a-fA-F]{6}$")

# Seeded on first init so color_id references have something to point at
DEFAULT_PALETTE = [
    ("Red", "#E53935"),
    ("Orange", "#FB8C00"),
    ("Yellow", "#FDD835"),
    ("Green", "#43A047"),
    ("Blue", "#1E88E5"),
    ("Purple", "#8E24AA"),
    ("Gray", "#757575"),
]


def _color_dict(c: Color) -> dict:
    return {"id": c.id, "name": c.name, "hex_code": c.hex_code}


class ColorService:
    @staticmethod
    def list_colors(db: Session) -> list[dict]:
        return [_color_dict(c) for c in db.query(Color).order_by(Color.id.asc()).all()]

    @staticmethod
    def create(db: Session, data: dict) -> dict:
        name = (data.get("name") or "").strip()
        hex_code = (data.get("hex_code") or "").strip()
        if not name or not hex_code:
            raise ValidationError("Color name and hex_code are required")
        if not HEX_RE.match(hex_code):
            raise ValidationError("hex_code must look like #RRGGBB")
        try:
            color = Color(name=name, hex_code=hex_code.upper())
            db.add(color)
            db.commit()
            db.refresh(color)
        except Exception:
            db.rollback()
            raise
        return _color_dict(color)

    @staticmethod
    def seed_defaults(db: Session) -> int:
        """Insert the default palette into an empty colors table. Returns rows added."""
        if db.query(Color.id).first():
            return 0
        try:
            db.add_all([Color(name=name, hex_code=hex_code) for name, hex_code in DEFAULT_PALETTE])
            db.commit()
        except Exception:
            db.rollback()
            raise
        return len(DEFAULT_PALETTE)
