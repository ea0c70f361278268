"""
정적 장소 파일 어댑터 단위 테스트
"""

import pytest
import openpyxl
from roadsafe.adapters.places.static_file import StaticPlacesProvider, load_places
from helpers import BASE_LAT, BASE_LON, north_of, pos


def write_csv(path, rows):
    path.write_text("\n".join(",".join(str(c) for c in r) for r in rows), encoding="utf-8")
    return str(path)


class TestLoadPlaces:
    """장소 파일 로드 테스트"""

    def test_csv(self, tmp_path):
        lat, lon = north_of(BASE_LAT, BASE_LON, 100)
        path = write_csv(tmp_path / "schools.csv", [
            ("name", "lat", "lon"),
            ("Lincoln Elementary", lat, lon),
            ("", lat, lon),
            ("Bad Row", "n/a", lon),
        ])
        places = load_places(path)
        assert [p.name for p in places] == ["Lincoln Elementary"]
        assert places[0].category == "school"

    def test_xlsx_with_facility_headers(self, tmp_path):
        wb = openpyxl.Workbook()
        ws = wb.active
        ws.append(["Facility Name", "Latitude (EPSG4326)", "Longitude (EPSG4326)", "Category"])
        ws.append(["Seoul Elementary", 37.57, 126.98, "school"])
        ws.append(["City Library", 37.56, 126.97, "library"])
        ws.append([None, None, None, None])
        path = tmp_path / "places.xlsx"
        wb.save(path)

        places = load_places(str(path))
        assert [(p.name, p.category) for p in places] == [
            ("Seoul Elementary", "school"), ("City Library", "library"),
        ]

    def test_missing_columns(self, tmp_path):
        path = write_csv(tmp_path / "bad.csv", [("title", "x", "y"), ("A", 1, 2)])
        with pytest.raises(ValueError):
            load_places(path)

    def test_unsupported_extension(self, tmp_path):
        path = tmp_path / "places.json"
        path.write_text("[]")
        with pytest.raises(ValueError):
            load_places(str(path))


class TestStaticPlacesProvider:
    """파일 기반 장소 검색 테스트"""

    async def test_nearby_search_filters_and_sorts(self, tmp_path):
        rows = [("name", "lat", "lon", "category")]
        for name, meters, category in [("Far", 3000, "school"), ("B", 500, "school"), ("A", 100, "school"),
                                       ("Library", 50, "library")]:
            lat, lon = north_of(BASE_LAT, BASE_LON, meters)
            rows.append((name, lat, lon, category))
        provider = StaticPlacesProvider.from_file(write_csv(tmp_path / "p.csv", rows))

        found = await provider.nearby_search(pos(0), 2000, "school")
        assert [p.name for p in found] == ["A", "B"]
