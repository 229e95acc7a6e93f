from shipping_rates.services.shipping_service import ShippingService, create_shipping_service

__all__ = ["ShippingService", "create_shipping_service"]
