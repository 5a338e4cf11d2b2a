#!/usr/bin/env python3
import asyncio
import os
import sys
from pathlib import Path

from supabase import Client, create_client

# Add the project root to Python path so we can import from src
project_root = Path(__file__).parent.parent
sys.path.append(str(project_root))

from prisma import Prisma
from prisma.enums import ItemCategory, UserRole
from src.core.security import hash_password
from src.core.settings import settings
from src.domains.auth.tokens import create_access_token

ADMIN_EMAIL = os.getenv("SEED_ADMIN_EMAIL", "admin@punjabrelief.local")
ADMIN_PASSWORD = os.getenv("SEED_ADMIN_PASSWORD", "ChangeMe123!")

SERVICES = [
    ("Food", "Cooked meals"),
    ("Food", "Dry ration kit"),
    ("Hygiene (WASH)", "Hygiene kit"),
    ("Hygiene (WASH)", "Sanitary pads"),
    ("Shelter & NFI", "Tarpaulin"),
    ("Shelter & NFI", "Blankets"),
    ("Shelter & NFI", "Sleeping mats"),
    ("Medical", "First-aid kit"),
    ("Medical", "Essential medicines (basic)"),
    ("Rescue & Evacuation", "Rescue boats"),
    ("Rescue & Evacuation", "Life jackets"),
    ("Rescue & Evacuation", "Rescue ropes"),
    ("De-watering & Site Safety", "Water pumps (de-watering)"),
    ("De-watering & Site Safety", "Sandbags"),
    ("Transport & Logistics", "Delivery trucks/vans"),
    ("Power & Communications", "Generators"),
    ("Sanitation & Waste", "Disinfectant (bleach)"),
    ("Livestock & Animal Welfare", "Animal fodder"),
    ("Livestock & Animal Welfare", "Veterinary first aid"),
    ("Information & Coordination", "Helpline / IVR"),
]

ITEM_TYPES = [
    (ItemCategory.FOOD, "Cooked Meals", "Cooked Meals", "meals", True, 1),
    (ItemCategory.FOOD, "Dry Rations", "Dry Rations", "kits", True, 180),
    (ItemCategory.SHELTER, "Tarpaulin Sheets", "Tarpaulin Sheets", "pieces", False, None),
    (ItemCategory.SHELTER, "Blankets", "Blankets", "pieces", False, None),
    (ItemCategory.MEDICAL, "First Aid Kits", "First Aid Kits", "kits", False, None),
    (ItemCategory.MEDICAL, "Medicines", "Essential Medicines", "boxes", True, 365),
    (ItemCategory.WATER_SANITATION, "Drinking Water", "Drinking Water", "litres", True, 180),
    (ItemCategory.WATER_SANITATION, "Water Purification", "Water Purification Systems", "units", False, None),
    (ItemCategory.TRANSPORT, "Evacuation Transport", "Evacuation Transport", "vehicles", False, None),
    (ItemCategory.COMMUNICATION, "Satellite Phones", "Satellite Phones", "units", False, None),
]

ALERT_CATEGORIES = [
    (
        "Activation",
        "Current activation status of the response",
        [
            ("Inactive", "inactive", "gray"),
            ("Monitoring", "monitoring", "blue"),
            ("Response-Active", "response_active", "orange"),
            ("Recovery", "recovery", "yellow"),
            ("Closed", "closed", "green"),
        ],
    ),
    (
        "Flood Stage",
        "Current flood water level status",
        [
            ("Dry", "dry", "green"),
            ("Waterlogged", "waterlogged", "blue"),
            ("Inundated", "inundated", "red"),
            ("Receding", "receding", "yellow"),
        ],
    ),
    (
        "Access/Roads",
        "Road access conditions",
        [
            ("Open", "open", "green"),
            ("Limited", "limited", "yellow"),
            ("Closed", "closed", "red"),
        ],
    ),
    (
        "Power",
        "Electricity supply status",
        [
            ("Normal", "normal", "green"),
            ("Intermittent", "intermittent", "yellow"),
            ("Outage", "outage", "red"),
        ],
    ),
]

# state -> districts -> tehsils -> villages (code, name, lat, lon)
LOCATIONS = {
    ("03", "Punjab"): {
        ("035", "Gurdaspur"): {
            ("00187", "Dera Baba Nanak"): [
                ("028440", "Dera Baba Nanak", 32.0364, 75.0275),
                ("028459", "Kotli Surat Malhi", 31.9985, 75.1129),
            ],
        },
        ("036", "Kapurthala"): {
            ("00205", "Sultanpur Lodhi"): [
                ("031178", "Sultanpur Lodhi", 31.2150, 75.1967),
                ("031209", "Mand Inderpur", 31.2571, 75.1364),
            ],
        },
        ("049", "Firozpur"): {
            ("00251", "Firozpur"): [
                ("034632", "Hussainiwala", 30.9958, 74.5536),
            ],
        },
    }
}


async def setup_storage_bucket(supabase: Client):
    """Create and configure the private group documents bucket"""
    print("🗂️ Setting up storage bucket...")

    try:
        buckets = supabase.storage.list_buckets()
        bucket_exists = any(bucket.name == settings.DOCUMENTS_BUCKET for bucket in buckets)

        if not bucket_exists:
            supabase.storage.create_bucket(
                settings.DOCUMENTS_BUCKET,
                options={
                    "public": False,
                    "file_size_limit": settings.MAX_UPLOAD_BYTES,
                    "allowed_mime_types": ["image/jpeg", "image/png", "application/pdf"],
                },
            )
            print(f"✅ Created storage bucket: {settings.DOCUMENTS_BUCKET}")
        else:
            print(f"ℹ️ Storage bucket already exists: {settings.DOCUMENTS_BUCKET}")

    except Exception as e:
        # Storage is optional for local development
        print(f"❌ Storage bucket setup failed: {e}")


async def seed_admin(prisma: Prisma):
    admin = await prisma.user.find_unique(where={"email": ADMIN_EMAIL})
    if admin:
        print(f"ℹ️ Admin already exists: {ADMIN_EMAIL}")
    else:
        admin = await prisma.user.create(
            data={
                "primaryLogin": ADMIN_EMAIL,
                "email": ADMIN_EMAIL,
                "passwordHash": hash_password(ADMIN_PASSWORD),
                "roles": [UserRole.admin, UserRole.user],
            }
        )
        print(f"✅ Created admin: {ADMIN_EMAIL}")
    return admin


async def seed_locations(prisma: Prisma):
    village_count = 0
    for (state_code, state_name), districts in LOCATIONS.items():
        await prisma.state.upsert(
            where={"code": state_code},
            data={
                "create": {"code": state_code, "name": state_name},
                "update": {"name": state_name},
            },
        )
        for (district_code, district_name), tehsils in districts.items():
            await prisma.district.upsert(
                where={"code": district_code},
                data={
                    "create": {
                        "code": district_code,
                        "name": district_name,
                        "stateCode": state_code,
                    },
                    "update": {"name": district_name},
                },
            )
            for (tehsil_code, tehsil_name), villages in tehsils.items():
                await prisma.tehsil.upsert(
                    where={"code": tehsil_code},
                    data={
                        "create": {
                            "code": tehsil_code,
                            "name": tehsil_name,
                            "districtCode": district_code,
                        },
                        "update": {"name": tehsil_name},
                    },
                )
                for code, name, lat, lon in villages:
                    await prisma.village.upsert(
                        where={"code": code},
                        data={
                            "create": {
                                "code": code,
                                "name": name,
                                "tehsilCode": tehsil_code,
                                "districtCode": district_code,
                                "lat": lat,
                                "lon": lon,
                            },
                            "update": {"name": name, "lat": lat, "lon": lon},
                        },
                    )
                    village_count += 1
    print(f"✅ Seeded {village_count} villages")


async def seed_catalog(prisma: Prisma):
    result = await prisma.service.create_many(
        data=[
            {"broadCategory": broad, "subcategory": sub} for broad, sub in SERVICES
        ],
        skip_duplicates=True,
    )
    print(f"✅ Created {result} services")

    result = await prisma.inventoryitemtype.create_many(
        data=[
            {
                "category": category,
                "subcategory": subcategory,
                "name": name,
                "unit": unit,
                "isPerishable": perishable,
                "shelfLifeDays": shelf_life,
                "sortOrder": index,
            }
            for index, (category, subcategory, name, unit, perishable, shelf_life) in enumerate(
                ITEM_TYPES
            )
        ],
        skip_duplicates=True,
    )
    print(f"✅ Created {result} inventory item types")


async def seed_alert_categories(prisma: Prisma):
    for order, (name, description, statuses) in enumerate(ALERT_CATEGORIES, start=1):
        category = await prisma.alertcategory.upsert(
            where={"name": name},
            data={
                "create": {"name": name, "description": description, "orderIndex": order},
                "update": {"description": description, "orderIndex": order},
            },
        )
        await prisma.alertstatus.create_many(
            data=[
                {
                    "categoryId": category.id,
                    "name": status_name,
                    "value": value,
                    "color": color,
                    "orderIndex": index,
                }
                for index, (status_name, value, color) in enumerate(statuses, start=1)
            ],
            skip_duplicates=True,
        )
    print(f"✅ Seeded {len(ALERT_CATEGORIES)} alert categories")


async def main():
    print("🌱 Starting database seed...")

    prisma = Prisma()
    await prisma.connect()

    supabase: Client | None = (
        create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY)
        if settings.SUPABASE_URL and settings.SUPABASE_SERVICE_ROLE_KEY
        else None
    )

    try:
        admin = await seed_admin(prisma)
        await seed_locations(prisma)
        await seed_catalog(prisma)
        await seed_alert_categories(prisma)

        if supabase:
            await setup_storage_bucket(supabase)
        else:
            print("ℹ️ Skipping storage bucket setup - Supabase not configured")

        # Access token for trying the admin endpoints locally
        token = create_access_token(
            admin.id, admin.email, admin.phone, [r.value for r in admin.roles]
        )
        print("\n🔑 Admin access token:")
        print(token)

        print("🌱 Seed completed successfully!")

    except Exception as e:
        print(f"❌ Seed failed: {e}")
        raise
    finally:
        await prisma.disconnect()


if __name__ == "__main__":
    asyncio.run(main())
