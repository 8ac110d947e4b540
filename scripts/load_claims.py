"""Load the claims view for one wallet against live services.

Usage:
    PYTHONPATH=src python scripts/load_claims.py 0xWALLET [--verify-proofs]

Runs the read path end to end:
  1. Fetch + validate every configured payout ledger (IPFS)
  2. Look up trades and orders (orderbook subgraph)
  3. Reconcile against claim-context logs (Hypersync)
  4. Print holdings, history and totals
"""

import argparse
import asyncio
import logging
import sys
import time

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)-5s %(name)s - %(message)s")
logger = logging.getLogger("load_claims")

# Suppress noisy loggers
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


def separator(title: str) -> None:
    print(f"\n{'=' * 60}")
    print(f"  {title}")
    print(f"{'=' * 60}\n")


async def main(wallet: str, verify_proofs: bool) -> None:
    from royaltyclaims.config import settings
    from royaltyclaims.container import Container
    from royaltyclaims.ledger.accumulator import MerkleAccumulator, verify_proof

    separator("Claims - Royalty Claims")
    print(f"Registry:     {'production' if settings.is_production else 'development'}")
    print(f"Hypersync:    {settings.hypersync_url} ({'key set' if settings.hypersync_api_key else 'NO KEY'})")
    print(f"Subgraph:     {settings.orderbook_subgraph_url}")
    print(f"IPFS:         {settings.ipfs_gateway_url}")
    print(f"Signer:       {'configured' if settings.claims_signer_private_key else 'NOT SET (unsigned holdings)'}")

    container = Container()
    container.settings.override(settings)
    service = container.claims_service()

    t0 = time.time()
    try:
        result = await service.load_claims_for_wallet(wallet)
    except Exception:
        logger.exception("Loading claims failed")
        sys.exit(1)
    elapsed = time.time() - t0

    separator(f"Holdings ({elapsed:.1f}s)")
    for group in result.holdings:
        print(
            f"  {group.field_name} [{group.token_address}]: "
            f"{group.total_amount} unclaimed, {len(group.holdings)} rows"
        )
        for h in group.holdings:
            print(f"    #{h.id}: {h.unclaimed_amount} (proof depth {len(h.proof.path)})")

    separator("Claim history")
    for entry in result.claim_history:
        print(f"  {entry.date.isoformat()}  {entry.amount:>20}  {entry.asset}  {entry.tx_hash}")
    if not result.claim_history:
        print("  (none)")

    separator("Totals")
    print(f"  Earned:    {result.totals.earned}")
    print(f"  Claimed:   {result.totals.claimed}")
    print(f"  Unclaimed: {result.totals.unclaimed}")
    if result.has_partial_data_error:
        print("\n  WARNING: one or more claim sources failed; totals are partial")

    failures = 0
    if verify_proofs:
        separator("Proof verification")
        validator = container.validator()
        for source in service.sources:
            rows = await validator.validate_source(source)
            root = MerkleAccumulator.from_rows(rows).root
            for group in result.holdings:
                for h in group.holdings:
                    if h.order_hash.lower() != source.order_hash.lower():
                        continue
                    if not verify_proof(root, h.proof.path, h.proof.leaf_value):
                        failures += 1
                        print(f"  FAIL #{h.id} against {root}")
        print(f"  {failures} failures")

    await container.http_client().close()
    if verify_proofs and failures:
        sys.exit(1)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("wallet")
    parser.add_argument("--verify-proofs", action="store_true")
    args = parser.parse_args()
    asyncio.run(main(args.wallet, args.verify_proofs))
