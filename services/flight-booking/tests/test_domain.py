import re
import unittest
from datetime import date, datetime, time, timedelta, timezone

from app.domain import (
    ALLOWED_TRANSITIONS,
    append_cancellation,
    can_be_cancelled,
    ensure_timezone,
    ensure_transition,
    generate_booking_reference,
    is_international_flight,
    is_past_departure,
)
from app.exceptions import InvalidStatusTransition
from app.models import BookingStatus


class StatusTransitionTests(unittest.TestCase):
    def test_every_pair_follows_transition_table(self):
        for current in BookingStatus:
            for new in BookingStatus:
                with self.subTest(current=current, new=new):
                    if new in ALLOWED_TRANSITIONS[current]:
                        ensure_transition(current.value, new.value)
                    else:
                        with self.assertRaises(InvalidStatusTransition):
                            ensure_transition(current.value, new.value)

    def test_terminal_states_have_no_exits(self):
        self.assertEqual(ALLOWED_TRANSITIONS[BookingStatus.CANCELLED], set())
        self.assertEqual(ALLOWED_TRANSITIONS[BookingStatus.FAILED], set())

    def test_unknown_status_is_rejected(self):
        with self.assertRaises(InvalidStatusTransition) as ctx:
            ensure_transition("PENDING", "SHIPPED")
        self.assertIn("SHIPPED", str(ctx.exception))

    def test_only_active_bookings_are_cancellable(self):
        self.assertTrue(can_be_cancelled(BookingStatus.PENDING))
        self.assertTrue(can_be_cancelled("CONFIRMED"))
        self.assertFalse(can_be_cancelled(BookingStatus.CANCELLED))
        self.assertFalse(can_be_cancelled("FAILED"))


class BookingReferenceTests(unittest.TestCase):
    def test_reference_format(self):
        pattern = re.compile(r"^BK[0-9A-F]{8}$")
        for _ in range(50):
            self.assertRegex(generate_booking_reference(), pattern)

    def test_references_differ(self):
        references = {generate_booking_reference() for _ in range(200)}
        self.assertEqual(len(references), 200)


class DeparturePredicateTests(unittest.TestCase):
    now = datetime(2030, 5, 10, 12, 0)

    def test_earlier_day_has_passed(self):
        self.assertTrue(is_past_departure(date(2030, 5, 9), time(23, 59), self.now))

    def test_same_day_compares_time(self):
        self.assertTrue(is_past_departure(date(2030, 5, 10), time(11, 59), self.now))
        self.assertFalse(is_past_departure(date(2030, 5, 10), time(12, 30), self.now))

    def test_future_day_has_not_passed(self):
        self.assertFalse(is_past_departure(date(2030, 5, 11), time(0, 0), self.now))

    def test_defaults_to_current_clock(self):
        self.assertFalse(is_past_departure(date.today() + timedelta(days=1), time(0, 0)))
        self.assertTrue(is_past_departure(date.today() - timedelta(days=1), time(23, 59)))


class InternationalFlightTests(unittest.TestCase):
    def test_cross_border_route(self):
        self.assertTrue(is_international_flight("ICN", "LAX"))

    def test_domestic_route(self):
        self.assertFalse(is_international_flight("GMP", "ICN"))

    def test_unknown_airport_is_undecided(self):
        self.assertIsNone(is_international_flight("ICN", "ZZZ"))
        self.assertIsNone(is_international_flight(None, "LAX"))


class MessageTests(unittest.TestCase):
    def test_cancellation_line_is_appended(self):
        at = datetime(2030, 1, 1, 9, 0, tzinfo=timezone.utc)
        result = append_cancellation("Booking confirmed", at)
        self.assertEqual(result, f"Booking confirmed\nCancelled at: {at.isoformat()}")

    def test_cancellation_line_without_previous_response(self):
        at = datetime(2030, 1, 1, 9, 0, tzinfo=timezone.utc)
        self.assertEqual(append_cancellation(None, at), f"Cancelled at: {at.isoformat()}")

    def test_naive_timestamps_become_utc(self):
        naive = datetime(2030, 1, 1, 9, 0)
        self.assertEqual(ensure_timezone(naive).tzinfo, timezone.utc)


if __name__ == "__main__":
    unittest.main()
