"""
Seed the gym catalog: Veer's Gym and its pass types.
Re-running updates the catalog in place; purchased passes are never touched.
"""
import sys
from decimal import Decimal
sys.path.insert(0, '.')

from database import get_db_session, init_db
from models_orm import GymORM, PassTypeORM, new_id

GYM = {
    "name": "Veer's Gym",
    "location": "Downtown Fitness Hub",
    "qr_identifier": "veers-gym-main",  # The identifier printed in the gym's QR code
}

PASS_TYPES = [
    ("1 Day Pass", 1, "10.00"),
    ("7 Day Pass", 7, "50.00"),
    ("15 Day Pass", 15, "150.00"),
    ("30 Day Pass", 30, "150.00"),
    ("90 Day Pass", 90, "150.00"),
    ("180 Day Pass", 180, "150.00"),
    ("365 Day Pass", 365, "150.00"),
]
CURRENCY = "INR"


def seed(db):
    gym = db.query(GymORM).filter(GymORM.qr_identifier == GYM["qr_identifier"]).first()
    if gym:
        gym.name = GYM["name"]
        gym.location = GYM["location"]
        print(f"[OK] Updated gym {gym.id}")
    else:
        gym = GymORM(id=new_id(), **GYM)
        db.add(gym)
        print(f"[OK] Created gym with id: {gym.id}")
    db.commit()

    for name, duration, price in PASS_TYPES:
        pass_type = db.query(PassTypeORM).filter(
            PassTypeORM.gym_id == gym.id,
            PassTypeORM.name == name
        ).first()
        if pass_type:
            pass_type.duration_days = duration
            pass_type.price = Decimal(price)
            pass_type.currency = CURRENCY
            print(f"[OK] Updated pass type {name} ({pass_type.id})")
        else:
            pass_type = PassTypeORM(
                id=new_id(),
                gym_id=gym.id,
                name=name,
                duration_days=duration,
                price=Decimal(price),
                currency=CURRENCY,
            )
            db.add(pass_type)
            print(f"[OK] Created pass type {name} with id: {pass_type.id}")
        db.commit()

    return gym


if __name__ == "__main__":
    print("=" * 60)
    print("Seeding gym catalog")
    print("=" * 60)

    init_db()
    db = get_db_session()
    try:
        seed(db)
    except Exception as e:
        db.rollback()
        print(f"[ERROR] Seeding failed: {e}")
        sys.exit(1)
    finally:
        db.close()

    print("Seeding finished.")
