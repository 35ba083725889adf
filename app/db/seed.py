"""
Optional development seeding script.

Run with ``python -m app.db.seed``.
"""

import asyncio
import random
from datetime import timedelta

from app.core.database import AsyncSessionLocal, init_db
from app.models.log_event import LogEvent, LogLevel
from app.models.tenant import ProvisioningStatus, Tenant, TenantPlan
from app.utils.time import utc_now

SAMPLE_TENANTS = [
    ("acme", TenantPlan.PREMIUM, ProvisioningStatus.COMPLETED, True, "us-east"),
    ("globex", TenantPlan.FREE, ProvisioningStatus.COMPLETED, True, "eu-west"),
    ("initech", TenantPlan.FREE, ProvisioningStatus.IN_PROGRESS, False, "us-east"),
    ("umbrella", TenantPlan.PREMIUM, ProvisioningStatus.FAILED, True, "ap-south"),
    ("hooli", TenantPlan.FREE, ProvisioningStatus.PENDING, False, "eu-west"),
]

SAMPLE_MESSAGES = {
    LogLevel.INFO: ["Tenant backup completed", "User invited", "Ticket closed"],
    LogLevel.WARNING: ["Slow query detected", "Mailbox quota at 90%"],
    LogLevel.ERROR: ["Webhook delivery failed", "Attachment upload rejected"],
    LogLevel.CRITICAL: ["Database connection pool exhausted", "Provisioning job crashed"],
}


async def seed_data():
    """Seed database with sample data for development."""
    await init_db()
    now = utc_now()
    rng = random.Random(42)

    async with AsyncSessionLocal() as session:
        for offset, (name, plan, provisioning, verified, region) in enumerate(SAMPLE_TENANTS):
            created = now - timedelta(days=offset * 9 + 1)
            session.add(Tenant(
                name=name,
                custom_domain=f"{name}.example.com",
                admin_email=f"admin@{name}.example.com",
                plan=plan,
                email_verified=verified,
                provisioning_status=provisioning,
                user_count=rng.randint(1, 200),
                ticket_count=rng.randint(0, 2000),
                region=region,
                created_at=created,
                updated_at=created,
            ))
        await session.commit()
        print(f"Created {len(SAMPLE_TENANTS)} tenants")

        # A week of log events, older ones resolved
        levels = [LogLevel.INFO] * 6 + [LogLevel.WARNING] * 3 + [LogLevel.ERROR] * 2 + [LogLevel.CRITICAL]
        count = 0
        for day in range(7):
            for _ in range(rng.randint(5, 15)):
                level = rng.choice(levels)
                tenant = rng.choice(SAMPLE_TENANTS)[0]
                timestamp = now - timedelta(days=day, minutes=rng.randint(0, 1439))
                resolved = day > 2 and level != LogLevel.INFO
                session.add(LogEvent(
                    level=level,
                    message=rng.choice(SAMPLE_MESSAGES[level]),
                    source=tenant,
                    category=rng.choice(["database", "email", "provisioning", "api"]),
                    tenant_id=tenant,
                    timestamp=timestamp,
                    metadata_json={"seeded": True},
                    resolved=resolved,
                    resolved_by="seed@console.local" if resolved else None,
                    resolved_at=timestamp + timedelta(hours=1) if resolved else None,
                ))
                count += 1
        await session.commit()
        print(f"Created {count} log events")

        print("Seed data created successfully!")


if __name__ == "__main__":
    asyncio.run(seed_data())
