from authsvc.models.account import Account

__all__ = ["Account"]
