from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database import get_db
from dependencies import Caller, require_admin, require_operator
from models import Table, TableCreate, TableUpdate
from services.table_catalog import TableCatalog

table_router = APIRouter(
    tags=["Table"]
)

def get_table_catalog(db: Session = Depends(get_db)) -> TableCatalog:
    return TableCatalog(db)


@table_router.get("/tables", tags=["Table"])
def get_tables(
    include_inactive: bool = False,
    catalog: TableCatalog = Depends(get_table_catalog),
    caller: Caller = Depends(require_operator),
):
    """
    Lists the tables ordered by their number.

    Args:
        include_inactive (bool): Also return tables that no longer take bookings.

    Returns:
        list: A list of table dictionaries.
    """
    tables = catalog.list_tables(include_inactive=include_inactive)
    return [Table.model_validate(table) for table in tables]


@table_router.get("/tables/{id}", tags=["Table"])
def get_table(
    id: int,
    catalog: TableCatalog = Depends(get_table_catalog),
    caller: Caller = Depends(require_operator),
):
    return Table.model_validate(catalog.get_table(id))


@table_router.post("/tables", tags=["Table"], status_code=201)
def create_table(
    table: TableCreate,
    catalog: TableCatalog = Depends(get_table_catalog),
    caller: Caller = Depends(require_admin),
):
    db_table = catalog.create_table(table)
    return {"success": True, "table": Table.model_validate(db_table)}


@table_router.put("/tables/{id}", tags=["Table"])
def update_table(
    id: int,
    updated_table: TableUpdate,
    catalog: TableCatalog = Depends(get_table_catalog),
    caller: Caller = Depends(require_admin),
):
    """
    Updates number, capacity and active flag of a table.

    Deactivating a table keeps its existing reservations but rejects new ones.
    """
    db_table = catalog.update_table(id, updated_table)
    return {"success": True, "table": Table.model_validate(db_table)}


@table_router.delete("/tables/{id}", tags=["Table"])
def delete_table(
    id: int,
    catalog: TableCatalog = Depends(get_table_catalog),
    caller: Caller = Depends(require_admin),
):
    catalog.delete_table(id)
    return {"success": True}
