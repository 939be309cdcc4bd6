# scripts/notify.py
"""
Operator-run notification jobs (cron or by hand):

    python scripts/notify.py reminders        # check-in reminders for tomorrow
    python scripts/notify.py monthly-report   # last month's earnings per host
"""
import argparse
import asyncio
import logging
from datetime import date, datetime, timedelta

from homeland.core.config import get_settings
from homeland.core.logging_config import configure_logging
from homeland.db.session import AsyncSessionLocal
from homeland.db import crud_bookings, crud_properties, crud_users
from homeland.services.notifications import notification_service

logger = logging.getLogger("homeland.notify")


def previous_month(today: date):
    """
    (start, end) datetimes bounding the calendar month before `today`.
    """
    end = datetime(today.year, today.month, 1)
    last_day = end - timedelta(days=1)
    start = datetime(last_day.year, last_day.month, 1)
    return start, end


async def send_check_in_reminders(day: date = None) -> int:
    day = day or date.today() + timedelta(days=1)
    sent = 0
    async with AsyncSessionLocal() as db:
        for booking in await crud_bookings.list_bookings_checking_in(db, day):
            result = await notification_service.send_check_in_reminder(booking)
            if result["email"] or result["sms"]:
                sent += 1
    logger.info("Check-in reminders for %s: %s sent", day, sent)
    return sent


async def send_monthly_reports(today: date = None) -> int:
    start, end = previous_month(today or date.today())
    sent = 0
    async with AsyncSessionLocal() as db:
        for host in await crud_users.list_users_by_role(db, "host"):
            report = {
                "month": start.strftime("%B"),
                "year": start.year,
                "total_bookings": await crud_bookings.count_bookings(
                    db, statuses=("completed",), since=start, until=end, host_id=host.id
                ),
                "total_revenue": await crud_bookings.sum_completed_revenue(
                    db, since=start, until=end, host_id=host.id
                ),
                "active_properties": await crud_properties.count_properties(
                    db, host_id=host.id, active=True, approval_status="approved"
                ),
            }
            result = await notification_service.send_monthly_report(host, report)
            if result["email"] or result["sms"]:
                sent += 1
    logger.info("Monthly reports for %s: %s sent", start.strftime("%Y-%m"), sent)
    return sent


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(description="Homeland notification jobs")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("reminders", help="send check-in reminders for tomorrow's arrivals")
    sub.add_parser("monthly-report", help="send hosts last month's earnings")
    args = parser.parse_args(argv)

    configure_logging(get_settings().LOG_LEVEL)
    if args.command == "reminders":
        asyncio.run(send_check_in_reminders())
    else:
        asyncio.run(send_monthly_reports())


if __name__ == "__main__":
    main()
