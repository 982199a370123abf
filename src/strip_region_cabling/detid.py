"""Sub-detector and layer extraction from packed detector-unit ids."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, model_validator

from strip_region_cabling.geometry import SubDet

SubDetName = Literal["TIB", "TOB", "TID", "TEC"]


class BitField(BaseModel):
    start_bit: int = Field(ge=0, le=31)
    mask: int = Field(gt=0)

    def extract(self, det_id: int) -> int:
        return (det_id >> self.start_bit) & self.mask


class DetIdLayout(BaseModel):
    """Bit layout of the packed detector-unit identifier.

    Defaults follow the silicon-strip tracker encoding: the sub-detector
    code sits in bits 25-27, the layer (TIB, TOB) or wheel (TID, TEC)
    below it.
    """

    subdet_field: BitField = BitField(start_bit=25, mask=0x7)
    subdet_codes: dict[SubDetName, int] = {"TIB": 3, "TID": 4, "TOB": 5, "TEC": 6}
    layer_fields: dict[SubDetName, BitField] = {
        "TIB": BitField(start_bit=14, mask=0x7),
        "TOB": BitField(start_bit=14, mask=0x7),
        "TID": BitField(start_bit=11, mask=0x3),
        "TEC": BitField(start_bit=14, mask=0xF),
    }

    @model_validator(mode="after")
    def validate_codes(self) -> DetIdLayout:
        codes = list(self.subdet_codes.values())
        if len(set(codes)) != len(codes):
            raise ValueError("det_id_layout.subdet_codes must be distinct")
        for name, code in self.subdet_codes.items():
            if code & ~self.subdet_field.mask:
                raise ValueError(
                    f"det_id_layout.subdet_codes.{name}={code} does not fit subdet_field mask "
                    f"{self.subdet_field.mask:#x}"
                )
        missing = sorted(set(self.subdet_codes) - set(self.layer_fields))
        if missing:
            raise ValueError(f"det_id_layout.layer_fields missing sub-detector(s): {', '.join(missing)}")
        return self


DEFAULT_LAYOUT = DetIdLayout()


def subdet_from_det_id(det_id: int, layout: DetIdLayout = DEFAULT_LAYOUT) -> SubDet:
    """Return the sub-detector encoded in det_id, UNKNOWN if none matches."""
    code = layout.subdet_field.extract(det_id)
    for name, value in layout.subdet_codes.items():
        if value == code:
            return SubDet[name]
    return SubDet.UNKNOWN


def layer_from_det_id(det_id: int, layout: DetIdLayout = DEFAULT_LAYOUT) -> int:
    """Return the layer (or wheel) encoded in det_id, 0 for unknown sub-detectors."""
    subdet = subdet_from_det_id(det_id, layout)
    if subdet is SubDet.UNKNOWN:
        return 0
    return layout.layer_fields[subdet.name].extract(det_id)


def make_det_id(subdet: SubDet, layer: int, layout: DetIdLayout = DEFAULT_LAYOUT, module: int = 0) -> int:
    """Pack a detector-unit id with the given sub-detector and layer fields.

    The detector field (bits 28-31) is set to the tracker value 1; module
    fills bits not used by the detector, sub-detector or layer fields.
    """
    if subdet is SubDet.UNKNOWN:
        raise ValueError("Cannot encode a det-id for the UNKNOWN sub-detector")
    field = layout.layer_fields[subdet.name]
    if layer & ~field.mask:
        raise ValueError(f"Layer {layer} does not fit {subdet.name} layer mask {field.mask:#x}")
    reserved = (0xF << 28) | (layout.subdet_field.mask << layout.subdet_field.start_bit)
    reserved |= field.mask << field.start_bit
    if module < 0 or module & reserved:
        raise ValueError(f"Module {module} overlaps the {subdet.name} det-id fields {reserved:#x}")
    det_id = (1 << 28) | (layout.subdet_codes[subdet.name] << layout.subdet_field.start_bit)
    det_id |= layer << field.start_bit
    return det_id | module
