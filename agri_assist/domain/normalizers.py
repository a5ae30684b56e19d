import re
from enum import Enum
from typing import Any, Type

from .enums import EventCategory, ProductType


class EnumNormalizer:
    # alias -> canonical value, one table per enum
    ALIASES: dict[Type[Enum], dict[str, str]] = {
        EventCategory: {
            "pest control": "Pest Control",
            "pestcontrol": "Pest Control",
            "pest_control": "Pest Control",
            "pest-control": "Pest Control",
            "disease control": "Pest Control",
            "plant protection": "Pest Control",
            "land preparation": "Preparation",
            "sowing": "Preparation",
            "fertilization": "Fertilizer",
            "nutrient management": "Fertilizer",
            "irrigation": "Irrigation",
            "watering": "Irrigation",
            "harvest": "Harvesting",
        },
        ProductType: {
            "bio-pesticide": "Organic",
            "biopesticide": "Organic",
            "organic": "Organic",
            "pesticide": "Insecticide",
            "fertiliser": "Fertilizer",
        },
    }

    @staticmethod
    def _canon_key(x: Any) -> str:
        s = str(x).strip().lower()
        s = re.sub(r"\s+", " ", s)
        return s

    @classmethod
    def normalize(cls, enum_cls: Type[Enum], value: Any) -> Any:
        if value is None:
            return value

        if isinstance(value, enum_cls):
            return value.value

        key = cls._canon_key(value)
        for member in enum_cls:
            if cls._canon_key(member.value) == key:
                return member.value

        aliases = cls.ALIASES.get(enum_cls, {})
        # unknown values pass through so pydantic reports them
        return aliases.get(key, value)
