#!/usr/bin/env python3
"""Walk through the message ledger lifecycle without running the API server.

This script shows how to:
1. Seal a value with the local ciphertext authority
2. Store the handle on the ledger and read it back
3. Soft-delete a message and observe the owner index and batch view

Usage:
    SECRET_KEY=demo DATABASE_URL=sqlite:// python examples/ledger_demo.py
"""

import os
import sys

os.environ.setdefault("SECRET_KEY", "demo-secret")
os.environ.setdefault("DATABASE_URL", "sqlite://")

# Add the src directory to the path so we can import neon_ledger modules
sys.path.insert(0, "src")

from nacl.signing import SigningKey  # noqa: E402

from neon_ledger.core.security import encode_b64  # noqa: E402
from neon_ledger.core.settings import settings  # noqa: E402
from neon_ledger.db.session import SessionLocal, create_tables  # noqa: E402
from neon_ledger.services.authority import CiphertextRef, LocalCiphertextAuthority  # noqa: E402
from neon_ledger.services.errors import LedgerError  # noqa: E402
from neon_ledger.services.ledger import (  # noqa: E402
    CallerIdentity,
    MessageLedger,
    ledger_identity_for,
)
from neon_ledger.utils.hash import blake3_digest  # noqa: E402


def _new_caller() -> CallerIdentity:
    pubkey = SigningKey.generate().verify_key.encode()
    return CallerIdentity(user_id=blake3_digest(pubkey))


def demonstrate_ledger_workflow() -> None:
    """Run the create/read/delete cycle for two callers."""
    print("Neon Ledger demonstration")
    print("=" * 40)

    create_tables()
    authority = LocalCiphertextAuthority()
    alice, bob = _new_caller(), _new_caller()

    with SessionLocal() as session:
        ledger = MessageLedger(session, authority, ledger_identity_for(settings.ledger_instance_id))

        for value in (10, 20, 30):
            sealed = authority.encrypt_input(value, alice.user_id)
            receipt = ledger.create(sealed.handle, sealed.proof, alice)
            print(f"Stored value {value} as message {receipt.id}")

        print(f"Total messages: {ledger.total()}")
        print(f"Alice owns: {ledger.list_owned(alice.user_id)}")
        print(f"Bob owns:   {ledger.list_owned(bob.user_id)}")
        print()

        view = ledger.get(0)
        plaintext = authority.decrypt(CiphertextRef(handle=view.content_handle), alice.user_id)
        print(f"Alice decrypts message 0: {plaintext}")

        try:
            ledger.delete(0, bob)
        except LedgerError as err:
            print(f"Bob deleting message 0: {err}")

        ledger.delete(0, alice)
        print(f"After Alice deletes it: exists/active = {ledger.exists(0)}")

        try:
            ledger.delete(0, alice)
        except LedgerError as err:
            print(f"Deleting again: {err}")
        print()

        batch = ledger.get_batch([2, 0, 1])
        print("Batch view for [2, 0, 1]:")
        for position, message_id in enumerate((2, 0, 1)):
            print(
                f"  #{message_id}: owner={encode_b64(batch.owners[position])[:10]}... "
                f"created_at={batch.created_at[position]} active={batch.active[position]}"
            )


if __name__ == "__main__":
    try:
        demonstrate_ledger_workflow()
        print("\nDemonstration complete!")
    except Exception as e:
        print(f"Error during demonstration: {e}")
        sys.exit(1)
