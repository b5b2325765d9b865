from .service import TransferResult, TreasuryService, post_transaction

__all__ = ["TransferResult", "TreasuryService", "post_transaction"]
