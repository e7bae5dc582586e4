from busdesk.integrations.remote_store import RemoteStoreClient

__all__ = ["RemoteStoreClient"]
