# Overview: Threaded concurrency checks against a file-backed SQLite database.

"""
Scripted concurrency tests.

Each worker runs in its own thread and app context, so every worker gets
its own session and connection.
"""

import os
import tempfile
import threading
import unittest

from quark import create_app
from quark.extensions import db
from quark.models import Order, OrderStatusLog, PayrollItem, PayrollPeriod, StockEntry, User
from quark.models.orders import CANCELLED
from quark.services import order_service, payroll_service, production_service
from quark.services.payroll_service import OverlappingPeriodError, PeriodLockedError
from quark.services.production_service import InvalidTransitionError


ORDER_PAYLOAD = {
    "order_date": "2026-03-14",
    "car_model": "Honda City",
    "car_year": "2023",
    "material_type": "PVC",
    "material_color": "grey",
    "quantity": 1,
}


class ConcurrencyTests(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        db_path = os.path.join(self.tmpdir.name, "concurrency.db")
        self.app = create_app({
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": f"sqlite:///{db_path}",
        })

        with self.app.app_context():
            db.drop_all()
            db.create_all()

            user = User(username="concurrent_user", password_hash="dummy", is_active=True)
            db.session.add(user)
            db.session.commit()
            self.user_id = user.id

    def tearDown(self):
        with self.app.app_context():
            db.session.remove()
            db.drop_all()
            db.session.remove()
            db.engine.dispose()
        self.tmpdir.cleanup()

    def _run_threads(self, target, count, *args):
        results = []
        lock = threading.Lock()

        def worker():
            with self.app.app_context():
                try:
                    value = target(*args)
                    with lock:
                        results.append(value)
                except Exception as exc:
                    with lock:
                        results.append(exc)
                finally:
                    db.session.remove()

        threads = [threading.Thread(target=worker) for _ in range(count)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        return results

    def test_order_numbers_are_distinct(self):
        def create():
            return order_service.create_order(dict(ORDER_PAYLOAD), user_id=self.user_id).order_no

        results = self._run_threads(create, 10)

        errors = [r for r in results if isinstance(r, Exception)]
        self.assertFalse(errors)
        self.assertEqual(len(results), len(set(results)))
        self.assertEqual(sorted(results), [f"QK-2026-{n:04d}" for n in range(1, 11)])

    def test_double_cancel_returns_stock_once(self):
        with self.app.app_context():
            order = order_service.create_order(dict(ORDER_PAYLOAD), user_id=self.user_id)
            order_id = order.id

        def cancel():
            production_service.change_production_status(order_id, CANCELLED, user_id=self.user_id)
            return "cancelled"

        results = self._run_threads(cancel, 2)

        self.assertEqual(results.count("cancelled"), 1)
        rejected = [r for r in results if r != "cancelled"]
        self.assertEqual(len(rejected), 1)
        self.assertIsInstance(rejected[0], InvalidTransitionError)

        with self.app.app_context():
            self.assertEqual(db.session.query(StockEntry).filter_by(source_order_id=order_id).count(), 1)
            self.assertEqual(
                db.session.query(OrderStatusLog).filter_by(order_id=order_id, status=CANCELLED).count(),
                1,
            )
            self.assertEqual(db.session.get(Order, order_id).production_status, CANCELLED)

    def test_overlapping_period_creation_admits_one(self):
        def create():
            return payroll_service.create_period("2026-03-01", "2026-03-15", user_id=self.user_id).period_no

        results = self._run_threads(create, 5)

        created = [r for r in results if isinstance(r, str)]
        self.assertEqual(len(created), 1)
        for r in results:
            if not isinstance(r, str):
                self.assertIsInstance(r, OverlappingPeriodError)

        with self.app.app_context():
            self.assertEqual(db.session.query(PayrollPeriod).count(), 1)

    def test_save_racing_lock_never_lands_in_locked_period(self):
        with self.app.app_context():
            period = payroll_service.create_period("2026-04-01", "2026-04-15", user_id=self.user_id)
            period_id = period.id

        results = []
        lock = threading.Lock()

        def save():
            with self.app.app_context():
                try:
                    payroll_service.save_payroll_item(
                        {"period_id": period_id, "user_id": self.user_id, "pay_type": "piece", "piece_count": 10},
                        user_id=self.user_id,
                    )
                    with lock:
                        results.append("saved")
                except Exception as exc:
                    with lock:
                        results.append(exc)
                finally:
                    db.session.remove()

        def lock_it():
            with self.app.app_context():
                try:
                    payroll_service.lock_period(period_id, user_id=self.user_id)
                    with lock:
                        results.append("locked")
                except Exception as exc:
                    with lock:
                        results.append(exc)
                finally:
                    db.session.remove()

        threads = [threading.Thread(target=save) for _ in range(4)]
        threads.insert(2, threading.Thread(target=lock_it))
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertIn("locked", results)
        for r in results:
            if r not in ("saved", "locked"):
                self.assertIsInstance(r, PeriodLockedError)

        with self.app.app_context():
            period = db.session.get(PayrollPeriod, period_id)
            self.assertTrue(period.is_locked)
            self.assertEqual(db.session.query(PayrollItem).count(), results.count("saved"))
            # Every accepted save bumped the revision before the lock committed
            self.assertEqual(period.revision, results.count("saved"))


if __name__ == "__main__":
    unittest.main()
