import os

from sqlalchemy import Engine
from sqlmodel import Session, create_engine, select

from paygate.models.schema import PAYMENT_ENCRYPTED_FIELDS, PaymentApplication
from paygate.shared import load_config

config = load_config()


def attack_payment_field(engine: Engine, application_id: str, field: str):
    with Session(engine) as session:
        application = session.exec(
            select(PaymentApplication).where(PaymentApplication.id == application_id)
        ).first()
        if not application:
            print(f"[!] No payment application '{application_id}'")
            return

        # Keep the iv, replace the ciphertext with random blocks
        iv_hex, _, _ = getattr(application, field).partition(":")
        setattr(application, field, f"{iv_hex}:{os.urandom(32).hex()}")
        session.add(application)
        session.commit()
        print(f"[✔] Corrupted {field} of application '{application_id}'")


if __name__ == "__main__":
    import argparse

    from paygate.shared.db import engine

    def parse_args():
        parser = argparse.ArgumentParser(
            description="Simulate tampering with an encrypted payment field"
        )
        parser.add_argument("application_id", type=str, help="Application to modify")
        parser.add_argument(
            "--field",
            type=str,
            choices=PAYMENT_ENCRYPTED_FIELDS,
            default="amount",
            help="Encrypted column to corrupt",
        )
        parser.add_argument("--db", type=str, help="SQLite database path override")
        return parser.parse_args()

    args = parse_args()
    if args.db:
        engine = create_engine(args.db)

    attack_payment_field(engine, args.application_id, args.field)
