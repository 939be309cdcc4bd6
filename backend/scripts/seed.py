# scripts/seed.py
import asyncio
import logging
import random

from homeland.core.logging_config import configure_logging
from homeland.db.base import Base
from homeland.db.session import AsyncSessionLocal, engine
from homeland.db import models  # noqa: F401
from homeland.db.crud_categories import DEFAULT_CATEGORIES, upsert_categories
from homeland.db.crud_users import create_user, get_user_by_email
from homeland.db.crud_properties import create_property

logger = logging.getLogger("homeland.seed")

LOCATIONS = [
    ("Nairobi", "Kenya", -1.2921, 36.8219),
    ("Mombasa", "Kenya", -4.0435, 39.6682),
    ("Kisumu", "Kenya", -0.0917, 34.7680),
    ("Diani", "Kenya", -4.2797, 39.5947),
]
AMENITIES = ["WiFi", "Parking", "Pool", "Kitchen", "Air conditioning", "Washer"]


async def seed():
    async with AsyncSessionLocal() as db:
        # create tables (if migrations not run)
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        categories = await upsert_categories(db, DEFAULT_CATEGORIES)

        admin = await get_user_by_email(db, "admin@example.com")
        if not admin:
            admin = await create_user(
                db, first_name="Admin", last_name="User", email="admin@example.com",
                password="password", phone="+254700000000", role="admin",
            )

        hosts = []
        for i in range(3):
            email = f"host{i}@example.com"
            h = await get_user_by_email(db, email)
            if not h:
                h = await create_user(
                    db, first_name=f"Host{i}", last_name="Example", email=email,
                    password="password", phone=f"+25471100000{i}", role="host",
                )
            hosts.append(h)

        for i in range(12):
            host = random.choice(hosts)
            city, country, lat, lng = random.choice(LOCATIONS)
            # every third listing stays in the review queue
            status = "pending" if i % 3 == 0 else "approved"
            await create_property(
                db,
                host_id=host.id,
                category_id=random.choice(categories).id,
                title=f"{city} stay {i}",
                description="Comfortable place close to the city centre.",
                address=f"{10 + i} Example Road",
                city=city,
                country=country,
                latitude=lat,
                longitude=lng,
                price_per_night=50 + i * 10,
                max_guests=random.randint(2, 8),
                bedrooms=random.randint(1, 4),
                bathrooms=random.randint(1, 3),
                amenities=random.sample(AMENITIES, 3),
                images=["/static/uploads/sample.jpg"],
                host_contact=host.phone,
                pin_location=f"https://maps.google.com/?q={lat},{lng}",
                approval_status=status,
                approved_by_admin_id=admin.id if status == "approved" else None,
            )
        logger.info("Seed complete")


if __name__ == "__main__":
    configure_logging()
    asyncio.run(seed())
