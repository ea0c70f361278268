"""
Static places provider for RoadSafe.

Loads school (or other point-of-interest) locations from a CSV or Excel
file and answers nearby searches locally, without a network provider.
"""

import csv
import os
from typing import Dict, List, Optional
import openpyxl
from pydantic import ValidationError
from roadsafe.common.geo import distance_meters
from roadsafe.core.models import Coordinate, POI, Position
from roadsafe.observability.logging_setup import get_logger

log = get_logger("roadsafe.places_file")

# 허용되는 헤더 이름 (소문자 비교)
NAME_HEADERS = ("name", "facility name", "school name")
LAT_HEADERS = ("lat", "latitude", "latitude (epsg4326)")
LON_HEADERS = ("lon", "lng", "longitude", "longitude (epsg4326)")
CATEGORY_HEADERS = ("category", "type")


def _find_column(index: Dict[str, int], candidates) -> Optional[int]:
    for name in candidates:
        if name in index:
            return index[name]
    return None


def _rows_from_file(path: str) -> List[list]:
    """헤더 행을 포함한 모든 행을 리스트로 반환합니다."""
    ext = os.path.splitext(path)[1].lower()
    if ext == ".csv":
        with open(path, newline="", encoding="utf-8") as f:
            return [row for row in csv.reader(f)]
    if ext in (".xlsx", ".xlsm"):
        wb = openpyxl.load_workbook(path, read_only=True, data_only=True)
        try:
            return [list(row) for row in wb.active.iter_rows(values_only=True)]
        finally:
            wb.close()
    raise ValueError(f"지원하지 않는 파일 형식: {ext}")


def load_places(path: str, *, default_category: str = "school") -> List[POI]:
    """
    장소 데이터를 파일에서 로드합니다.

    이름이나 좌표가 비어 있거나 잘못된 행은 경고 후 건너뜁니다.

    Args:
        path: CSV 또는 XLSX 파일 경로
        default_category: 카테고리 컬럼이 없을 때 쓰는 값

    Returns:
        장소 목록

    Raises:
        ValueError: 필수 컬럼이 없거나 지원하지 않는 형식
    """
    rows = _rows_from_file(path)
    if not rows:
        return []

    index = {str(h).strip().lower(): i for i, h in enumerate(rows[0]) if h is not None}
    name_col = _find_column(index, NAME_HEADERS)
    lat_col = _find_column(index, LAT_HEADERS)
    lon_col = _find_column(index, LON_HEADERS)
    category_col = _find_column(index, CATEGORY_HEADERS)

    # 필수 컬럼 검증
    if name_col is None or lat_col is None or lon_col is None:
        raise ValueError(f"이름/위도/경도 컬럼을 찾을 수 없습니다. 사용 가능한 컬럼: {list(index.keys())}")

    places: List[POI] = []
    for row_num, row in enumerate(rows[1:], start=2):
        if len(row) <= max(name_col, lat_col, lon_col) or not row[name_col]:
            continue

        try:
            category = default_category
            if category_col is not None and category_col < len(row) and row[category_col]:
                category = str(row[category_col]).strip()
            places.append(POI(
                name=str(row[name_col]).strip(),
                location=Coordinate(latitude=float(row[lat_col]), longitude=float(row[lon_col])),
                category=category,
            ))
        except (ValueError, TypeError, ValidationError):
            log.warning("행 좌표 변환 실패", row=row_num, lat=row[lat_col], lon=row[lon_col])
            continue

    log.info("장소 파일 로드 완료", path=path, count=len(places))
    return places


class StaticPlacesProvider:
    """파일 기반 장소 검색 어댑터"""

    def __init__(self, places: List[POI]):
        self.places = places

    @classmethod
    def from_file(cls, path: str, *, default_category: str = "school") -> "StaticPlacesProvider":
        return cls(load_places(path, default_category=default_category))

    async def nearby_search(self, center: Position, radius_m: float, category: str) -> List[POI]:
        """반경 내 같은 카테고리 장소를 가까운 순으로 반환합니다."""
        hits = [
            (distance_meters(center, poi.location), poi)
            for poi in self.places
            if poi.category == category
        ]
        return [poi for dist, poi in sorted(hits, key=lambda h: h[0]) if dist <= radius_m]
