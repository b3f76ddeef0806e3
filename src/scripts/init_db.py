import asyncio
from datetime import datetime

from sqlalchemy.dialects.postgresql import insert

from src.database import engine, Base

# Import all models to ensure they are registered in Base.metadata
from src.analysis.models import AnalysisResult
from src.compliance.models import ComplianceResult, ComplianceRule
from src.compliance.rules import RULE_CATALOG


def rule_seed_rows() -> list[dict]:
    now = datetime.utcnow()
    return [
        {
            "id": rule.id,
            "category": rule.category.value,
            "name": rule.name,
            "description": rule.description,
            "enabled": True,
            "threshold": rule.threshold,
            "created_at": now,
            "updated_at": now,
        }
        for rule in RULE_CATALOG.values()
    ]


async def init_models():
    async with engine.begin() as conn:
        # await conn.run_sync(Base.metadata.drop_all) # Optional: Reset DB
        await conn.run_sync(Base.metadata.create_all)
        # Existing rules keep any edits made through the API
        await conn.execute(
            insert(ComplianceRule).values(rule_seed_rows()).on_conflict_do_nothing(index_elements=["id"])
        )
    print("Database tables created and compliance rules seeded.")

if __name__ == "__main__":
    asyncio.run(init_models())
