from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..db import get_db
from ..models.models import Material, Tool
from ..pipelines.inventory import materials, serialize_material, serialize_tool, tools
from ..services.envelope import ok
from ..services.listing import listing, paginate, search_clause
from ..services.pipeline import positive_id


materials_router = APIRouter(prefix="/api/materials", tags=["inventory"])
tools_router = APIRouter(prefix="/api/tools", tags=["inventory"])


# ---------- MATERIALS ----------
@materials_router.get("")
def list_materials(
    page: int = 1,
    limit: Optional[int] = None,
    sortBy: Optional[str] = None,
    sortOrder: Optional[str] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
):
    query = db.query(Material)
    clause = search_clause(search, [Material.name, Material.description])
    if clause is not None:
        query = query.filter(clause)
    sortable = {"id": Material.id, "name": Material.name, "stockQty": Material.stock_qty, "createdAt": Material.created_at}
    items, pagination = paginate(query, page, limit, sortBy, sortOrder or "asc", sortable, "name")
    return listing([serialize_material(m) for m in items], pagination)


@materials_router.get("/{material_id}")
def get_material(material_id: str, db: Session = Depends(get_db)):
    material = materials.get(db, positive_id(material_id, "material"))
    return ok(serialize_material(material))


@materials_router.post("", status_code=201)
def create_material(payload: dict, db: Session = Depends(get_db)):
    material = materials.create(db, payload)
    return ok(serialize_material(material), message="Material created successfully")


@materials_router.put("/{material_id}")
def update_material(material_id: str, payload: dict, db: Session = Depends(get_db)):
    material = materials.update(db, positive_id(material_id, "material"), payload)
    return ok(serialize_material(material), message="Material updated successfully")


@materials_router.delete("/{material_id}")
def delete_material(material_id: str, db: Session = Depends(get_db)):
    snapshot = materials.delete(db, positive_id(material_id, "material"))
    return ok(snapshot, message="Material deleted")


# ---------- TOOLS ----------
@tools_router.get("")
def list_tools(
    page: int = 1,
    limit: Optional[int] = None,
    sortBy: Optional[str] = None,
    sortOrder: Optional[str] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
):
    query = db.query(Tool)
    clause = search_clause(search, [Tool.name, Tool.description])
    if clause is not None:
        query = query.filter(clause)
    sortable = {"id": Tool.id, "name": Tool.name, "quantityAvailable": Tool.quantity_available, "createdAt": Tool.created_at}
    items, pagination = paginate(query, page, limit, sortBy, sortOrder or "asc", sortable, "name")
    return listing([serialize_tool(t) for t in items], pagination)


@tools_router.get("/{tool_id}")
def get_tool(tool_id: str, db: Session = Depends(get_db)):
    tool = tools.get(db, positive_id(tool_id, "tool"))
    return ok(serialize_tool(tool))


@tools_router.post("", status_code=201)
def create_tool(payload: dict, db: Session = Depends(get_db)):
    tool = tools.create(db, payload)
    return ok(serialize_tool(tool), message="Tool created successfully")


@tools_router.put("/{tool_id}")
def update_tool(tool_id: str, payload: dict, db: Session = Depends(get_db)):
    tool = tools.update(db, positive_id(tool_id, "tool"), payload)
    return ok(serialize_tool(tool), message="Tool updated successfully")


@tools_router.delete("/{tool_id}")
def delete_tool(tool_id: str, db: Session = Depends(get_db)):
    snapshot = tools.delete(db, positive_id(tool_id, "tool"))
    return ok(snapshot, message="Tool deleted")
