from pathlib import Path

import pytest
import yaml

from strip_region_cabling.detid import make_det_id
from strip_region_cabling.geometry import SubDet

TIB_L2 = make_det_id(SubDet.TIB, 2, module=5)
TOB_L4 = make_det_id(SubDet.TOB, 4, module=9)
TEC_W3 = make_det_id(SubDet.TEC, 3, module=17)
TEC_W12 = make_det_id(SubDet.TEC, 12, module=1)
NOT_A_STRIP = (1 << 28) | (1 << 25) | 7


def catalog_dict() -> dict:
    return {
        "detector_units": [
            {
                "det_id": TIB_L2,
                "eta": 0.1,
                "phi": 0.2,
                "connections": [
                    {"fed_id": 50, "fed_channel": 13, "apv_pair": 1, "n_apv_pairs": 2},
                    {"fed_id": 50, "fed_channel": 12, "apv_pair": 0, "n_apv_pairs": 2},
                ],
            },
            {
                "det_id": TOB_L4,
                "eta": -1.3,
                "phi": 3.5,
                "connections": [{"fed_id": 260, "fed_channel": 4}],
            },
            {
                "det_id": TEC_W3,
                "eta": 2.2,
                "phi": -0.5,
                "connections": [
                    {"fed_id": 300, "fed_channel": 0, "apv_pair": 0},
                    {"fed_id": 300, "fed_channel": 1, "apv_pair": 1},
                    {"fed_id": 300, "fed_channel": 2, "apv_pair": 2},
                ],
            },
            {"det_id": TEC_W12, "eta": 2.0, "phi": 1.0, "connections": [{"fed_id": 301, "fed_channel": 0}]},
            {"det_id": NOT_A_STRIP, "eta": 0.0, "phi": 0.0, "connections": [{"fed_id": 1, "fed_channel": 0}]},
        ]
    }


@pytest.fixture
def catalog_file(tmp_path: Path) -> Path:
    path = tmp_path / "catalog.yaml"
    path.write_text(yaml.safe_dump(catalog_dict()))
    return path


@pytest.fixture
def config_file(tmp_path: Path, catalog_file: Path) -> Path:
    path = tmp_path / "cabling.yaml"
    path.write_text(
        yaml.safe_dump(
            {
                "grid": {"eta_divisions": 10, "phi_divisions": 8, "eta_max": 2.5},
                "catalog": {"file": catalog_file.name},
                "report": {"top_regions": 3},
            }
        )
    )
    return path
