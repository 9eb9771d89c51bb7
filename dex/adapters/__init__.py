"""
Pool adapters: constant-product quoting and the ledger implementations.
"""

from .v2 import amount_in_with_fee, estimate_amount_out, get_amount_out, quote_swap, spot_price


def create_ledger(config):
    """
    Build the ledger a DashboardConfig asks for.

    Paper mode gets an in-memory PaperLedger seeded from the paper section;
    otherwise a FinePoolLedger connected over RPC.
    """
    if config.is_paper:
        from ..paper_ledger import PAPER_TOKEN0_ADDRESS, PAPER_TOKEN1_ADDRESS, PaperLedger

        paper = config.paper
        ledger = PaperLedger(
            reserve0=paper["reserve0"],
            reserve1=paper["reserve1"],
            total_supply=paper["total_supply"],
            account=paper["account"],
            lp_balances=dict(paper["lp_balances"]),
            fees=config.fees,
            token0=config.token(0)["address"] or PAPER_TOKEN0_ADDRESS,
            token1=config.token(1)["address"] or PAPER_TOKEN1_ADDRESS,
        )
        if config.pool_address:
            ledger.pool_address = config.pool_address
        return ledger

    from .finepool import FinePoolLedger

    return FinePoolLedger.from_config(config)


__all__ = [
    "amount_in_with_fee",
    "create_ledger",
    "estimate_amount_out",
    "get_amount_out",
    "quote_swap",
    "spot_price",
]
