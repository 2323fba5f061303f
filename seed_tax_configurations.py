"""
Seed default tax configurations for organizations that have none
"""
from dotenv import load_dotenv

load_dotenv()

from venue_api.core.database import SessionLocal  # noqa: E402
from venue_api.crud.tax_configuration import TaxConfigurationCRUD, OrganizationCRUD  # noqa: E402
from venue_api.services.tax_configuration import TaxConfigurationService  # noqa: E402


def seed_tax_configurations(db) -> int:
    """Seed every organization without a tax configuration; returns rows created"""
    service = TaxConfigurationService(TaxConfigurationCRUD(db))
    created = 0

    for organization in OrganizationCRUD(db).list_without_tax_configuration():
        rows = service.create_default_tax_configurations(organization)
        for row in rows:
            print(f"   {organization.name}: {row.name} ({row.tax_rate}%)")
        created += len(rows)

    return created


if __name__ == "__main__":
    print("=" * 60)
    print("SEEDING TAX CONFIGURATIONS")
    print("=" * 60)

    db = SessionLocal()
    try:
        total = seed_tax_configurations(db)
        print(f"\nCreated {total} tax configuration(s)")
    except Exception as e:
        print(f"\nError: {e}")
    finally:
        db.close()

    print("=" * 60)
