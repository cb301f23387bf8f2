from datetime import datetime, timezone
from typing import List

from loguru import logger
from sqlalchemy.orm import Session

from models import TableCreate, TableDB, TableUpdate
from services.errors import ConflictError, ErrorCode, NotFoundError
from services.stores import TableStore


class TableCatalog:
    """Staff-facing registry of physical tables."""

    def __init__(self, db: Session):
        self.db = db
        self.tables = TableStore(db)

    def get_table(self, table_id: int) -> TableDB:
        table = self.tables.find_by_id(table_id)
        if not table:
            raise NotFoundError(f"Table {table_id} not found")
        return table

    def list_tables(self, include_inactive: bool = False) -> List[TableDB]:
        if include_inactive:
            return self.tables.list_all()
        return self.tables.list_active()

    def create_table(self, table: TableCreate) -> TableDB:
        if self.tables.find_by_number(table.number):
            raise ConflictError(f"Table number {table.number} already exists", ErrorCode.TABLE_NUMBER_TAKEN)

        db_table = self.tables.save(TableDB(number=table.number, capacity=table.capacity, active=True))
        self.db.commit()
        self.db.refresh(db_table)
        logger.info(f"Created table {db_table.number} (id={db_table.id}, capacity={db_table.capacity})")
        return db_table

    def update_table(self, table_id: int, updated_table: TableUpdate) -> TableDB:
        db_table = self.get_table(table_id)

        existing = self.tables.find_by_number(updated_table.number)
        if existing and existing.id != table_id:
            raise ConflictError(
                f"Table number {updated_table.number} already exists", ErrorCode.TABLE_NUMBER_TAKEN
            )

        for field, value in updated_table.model_dump().items():
            setattr(db_table, field, value)
        db_table.updated_at = datetime.now(timezone.utc)

        self.tables.save(db_table)
        self.db.commit()
        self.db.refresh(db_table)
        logger.info(f"Updated table {db_table.number} (id={db_table.id}, active={db_table.active})")
        return db_table

    def delete_table(self, table_id: int) -> None:
        db_table = self.get_table(table_id)
        # historical reservations keep pointing at their table
        if self.tables.is_referenced(table_id):
            raise ConflictError(
                f"Cannot delete table {db_table.number} with existing reservations", ErrorCode.TABLE_IN_USE
            )

        number = db_table.number
        self.tables.delete(db_table)
        self.db.commit()
        logger.info(f"Deleted table {number} (id={table_id})")
