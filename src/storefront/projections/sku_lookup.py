"""SKU lookup: resolves a catalogue-wide SKU code to the product that owns it."""

from protean.core.projector import on
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from storefront.catalogue.events import VariantAdded
from storefront.catalogue.product import Product
from storefront.domain import storefront


@storefront.projection
class SkuLookup:
    sku = String(identifier=True, required=True, max_length=50)
    product_id = Identifier(required=True)
    variant_id = Identifier(required=True)


@storefront.projector(projector_for=SkuLookup, aggregates=[Product])
class SkuLookupProjector:
    @on(VariantAdded)
    def on_variant_added(self, event):
        current_domain.repository_for(SkuLookup).add(
            SkuLookup(
                sku=event.sku,
                product_id=event.product_id,
                variant_id=event.variant_id,
            )
        )
