"""Delivery area repository."""
from sqlalchemy import update

from app.db.database import bounded
from app.db.models import DeliveryArea, Order
from app.services.catalog.base import CatalogRepository


class DeliveryAreaRepository(CatalogRepository[DeliveryArea]):
    model = DeliveryArea
    label = "Delivery area"
    flag_fields = ("active",)
    unique_field = "name"

    async def _before_delete(self, record: DeliveryArea) -> None:
        # Orders keep the fee they were charged
        await bounded(
            self.db.execute(
                update(Order)
                .where(Order.delivery_area_id == record.id)
                .values(delivery_area_id=None)
                .execution_options(synchronize_session=False)
            ),
            self.timeout,
        )
