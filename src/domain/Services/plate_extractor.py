# src/domain/Services/plate_extractor.py
from __future__ import annotations
import logging
import re
import unicodedata
from typing import Optional

from src.domain.Models.plate import PlateCandidate, PlateExtraction

logger = logging.getLogger(__name__)


# Nombres de lugar válidos en placas japonesas (地名)
VALID_REGIONS = frozenset([
    # 関東
    "品川", "練馬", "足立", "多摩", "八王子", "横浜", "川崎", "相模", "湘南",
    "千葉", "習志野", "野田", "袖ヶ浦", "成田", "柏", "大宮", "所沢", "春日部",
    "熊谷", "川越", "越谷", "宇都宮", "とちぎ", "那須", "前橋", "高崎", "水戸",
    # 関西
    "大阪", "なにわ", "和泉", "京都", "神戸", "姫路", "奈良", "和歌山",
    # その他
    "札幌", "青森", "盛岡", "仙台", "秋田", "山形", "福島", "いわき",
    "新潟", "長岡", "富山", "金沢", "福井", "甲府", "長野", "松本",
    "岐阜", "飛騨", "静岡", "浜松", "沼津", "名古屋", "尾張小牧", "三河",
    "津", "四日市", "鈴鹿", "大津", "滋賀", "鳥取", "島根",
    "岡山", "倉敷", "広島", "福山", "下関", "山口", "徳島", "香川",
    "愛媛", "高知", "福岡", "北九州", "筑豊", "久留米", "佐賀", "長崎",
    "佐世保", "熊本", "大分", "宮崎", "鹿児島", "沖縄",
])

# Hiragana usadas en vehículos particulares (sin お, し, へ, ん)
VALID_KANA = frozenset([
    "あ", "い", "う", "え", "か", "き", "く", "け", "こ",
    "さ", "す", "せ", "そ", "た", "ち", "つ", "て", "と",
    "な", "に", "ぬ", "ね", "の", "は", "ひ", "ふ", "ほ",
    "ま", "み", "む", "め", "も", "や", "ゆ", "よ",
    "ら", "り", "る", "れ", "ろ", "わ",
])

# Patrones estructurales, en orden: 分類番号 de 3 dígitos primero, luego 2-3
STRUCTURAL_PATTERNS = [
    re.compile(r"([^\d\s]+)\s*(\d{3})\s*([あ-ん])\s*(\d{1,4})(?!\d)"),
    re.compile(r"([^\d\s]+)\s*(\d{2,3})\s*([あ-ん])\s*(\d{1,4})(?!\d)"),
]

# Patrón flexible: hiragana + exactamente 4 dígitos
LOOSE_PATTERN = re.compile(r"([あ-ん])\s*(\d{4})(?!\d)")

# Gramática estricta completa usada para puntuar
STRICT_PLATE = re.compile(r"^[^\d\s]+\s*\d{2,3}\s*[あ-ん]\s*\d{1,4}$")

_WHITESPACE = re.compile(r"\s+")

BASE_CONFIDENCE = 50.0
STRICT_BONUS = 30.0
REGION_COUNT_BONUS = 10.0
REGION_COUNT_MIN = 6
PROVIDER_WEIGHT = 10.0


def is_valid_region(region: str) -> bool:
    return region.strip() in VALID_REGIONS


def is_valid_kana(char: str) -> bool:
    return char in VALID_KANA


class PlateExtractor:
    """
    Extrae una placa japonesa del texto crudo reconocido:
    <地名> <分類番号> <ひらがな> <一連番号>

    - normaliza espacios (y dígitos de ancho completo)
    - prueba los patrones estructurales validando región y kana
    - si nada valida, cae al patrón flexible "kana + 4 dígitos"
      (más recall a costa de precisión)
    """

    def normalize(self, text: str) -> str:
        if not text:
            return ""
        # NFKC convierte "３３０" -> "330" sin tocar kanji ni hiragana
        t = unicodedata.normalize("NFKC", text)
        return _WHITESPACE.sub(" ", t).strip()

    def find_candidate(self, text: str) -> Optional[PlateCandidate]:
        clean = self.normalize(text)
        if not clean:
            return None

        for pattern in STRUCTURAL_PATTERNS:
            for match in pattern.finditer(clean):
                region, class_code, kana, serial = match.groups()
                if is_valid_region(region) and is_valid_kana(kana):
                    return PlateCandidate(
                        region=region.strip(),
                        class_code=class_code,
                        kana=kana,
                        serial=serial,
                    )

        loose = LOOSE_PATTERN.search(clean)
        if loose:
            kana, serial = loose.groups()
            logger.debug(f"Sin match estructural, usando patrón flexible: {kana} {serial}")
            return PlateCandidate(kana=kana, serial=serial)

        return None

    def score(
        self,
        plate_number: str,
        region_count: int = 0,
        provider_confidence: Optional[float] = None,
    ) -> float:
        """
        Confianza 0-100:
        base 50, +30 si cumple la gramática estricta, +10 si el proveedor
        detectó >= 6 regiones de texto, + confianza_proveedor * 10.
        """
        confidence = BASE_CONFIDENCE

        if STRICT_PLATE.match(plate_number):
            confidence = min(confidence + STRICT_BONUS, 100.0)

        if region_count >= REGION_COUNT_MIN:
            confidence = min(confidence + REGION_COUNT_BONUS, 100.0)

        if provider_confidence:
            fraction = float(provider_confidence)
            # algunos proveedores reportan 0-100 en lugar de 0-1
            if fraction > 1.0:
                fraction = fraction / 100.0
            confidence = min(confidence + fraction * PROVIDER_WEIGHT, 100.0)

        return max(0.0, min(confidence, 100.0))

    def extract(
        self,
        text: str,
        region_count: int = 0,
        provider_confidence: Optional[float] = None,
    ) -> PlateExtraction:
        candidate = self.find_candidate(text)
        if candidate is None:
            return PlateExtraction(plate_number=None)

        plate_number = candidate.plate_number
        return PlateExtraction(
            plate_number=plate_number,
            confidence=self.score(plate_number, region_count, provider_confidence),
            candidate=candidate,
        )
