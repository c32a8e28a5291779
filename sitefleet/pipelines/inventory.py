from ..models.models import Material, Tool
from ..schemas.inventory import MaterialIn, ToolIn
from ..services.envelope import iso
from ..services.normalization import clean_text, or_default, to_float, to_int, trim
from ..services.pipeline import EntityPipeline
from ..services.validation import NAME_MAX, Validator


def validate_material(data: dict) -> list:
    v = Validator(data)
    v.required("name", "Material name")
    v.positive_id("id", "Material ID")
    v.text("name", "Material name", NAME_MAX)
    v.number("stockQty", "Stock quantity")
    v.non_negative("stockQty", "Stock quantity cannot be negative")
    return v.errors


def normalize_material(data: dict) -> dict:
    return {
        "id": to_int(data.get("id")),
        "name": clean_text(data.get("name")),
        "description": trim(data.get("description")),
        "unit": clean_text(data.get("unit")),
        "stockQty": or_default(to_float(data.get("stockQty")), 0.0),
    }


def serialize_material(m: Material) -> dict:
    return {
        "id": m.id,
        "name": m.name,
        "description": m.description,
        "unit": m.unit,
        "stockQty": m.stock_qty,
        "createdAt": iso(m.created_at),
        "updatedAt": iso(m.updated_at),
    }


materials = EntityPipeline(
    model=Material,
    name="material",
    entity="Material",
    validate=validate_material,
    normalize=normalize_material,
    schema=MaterialIn,
    serialize=serialize_material,
    snapshot=("id", "name"),
)


def validate_tool(data: dict) -> list:
    v = Validator(data)
    v.required("name", "Tool name")
    v.positive_id("id", "Tool ID")
    v.text("name", "Tool name", NAME_MAX)
    v.number("quantityAvailable", "Available quantity")
    v.non_negative("quantityAvailable", "Available quantity cannot be negative")
    return v.errors


def normalize_tool(data: dict) -> dict:
    return {
        "id": to_int(data.get("id")),
        "name": clean_text(data.get("name")),
        "description": trim(data.get("description")),
        "quantityAvailable": or_default(to_int(data.get("quantityAvailable")), 0),
    }


def serialize_tool(t: Tool) -> dict:
    return {
        "id": t.id,
        "name": t.name,
        "description": t.description,
        "quantityAvailable": t.quantity_available,
        "createdAt": iso(t.created_at),
        "updatedAt": iso(t.updated_at),
    }


tools = EntityPipeline(
    model=Tool,
    name="tool",
    entity="Tool",
    validate=validate_tool,
    normalize=normalize_tool,
    schema=ToolIn,
    serialize=serialize_tool,
    snapshot=("id", "name"),
)
