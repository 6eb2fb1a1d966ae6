from delivery_api.client.api_client import ApiClientError, DeliveryApiClient
from delivery_api.client.session import Session

__all__ = ["ApiClientError", "DeliveryApiClient", "Session"]
