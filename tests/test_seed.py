from conftest import TestingSessionLocal
from models_orm import GymORM, PassTypeORM, PurchasedPassORM
from seed_gym_data import seed, PASS_TYPES


def test_seed_creates_catalog():
    db = TestingSessionLocal()
    try:
        gym = seed(db)

        assert gym.qr_identifier == "veers-gym-main"
        assert db.query(PassTypeORM).filter(PassTypeORM.gym_id == gym.id).count() == len(PASS_TYPES)
    finally:
        db.close()


def test_reseeding_keeps_purchased_passes(pass_service):
    db = TestingSessionLocal()
    try:
        gym = seed(db)
        gym_id = gym.id
        week = db.query(PassTypeORM).filter(PassTypeORM.gym_id == gym_id, PassTypeORM.name == "7 Day Pass").one()
        week_id = week.id
        week.price = 1
        db.commit()
    finally:
        db.close()

    purchase = pass_service.create_pending_purchase(week_id, device_id="device-1")
    pass_service.confirm_payment(purchase["pass_id"], "pay_1")

    db = TestingSessionLocal()
    try:
        again = seed(db)

        assert again.id == gym_id
        assert db.query(GymORM).count() == 1
        assert db.query(PassTypeORM).count() == len(PASS_TYPES)
        reseeded = db.query(PassTypeORM).filter(PassTypeORM.id == week_id).one()
        assert f"{reseeded.price:.2f}" == "50.00"
        kept = db.query(PurchasedPassORM).filter(PurchasedPassORM.id == purchase["pass_id"]).one()
        assert kept.payment_status == "succeeded"
    finally:
        db.close()
