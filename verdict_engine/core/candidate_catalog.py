"""Candidate Catalog — the static universe the personas debate over.

Invariants:
    - Symbols are unique (KRX six-digit codes)
    - Order is significant: the fallback statement uses the first five entries
    - Catalog is data only; nothing here computes or fetches prices

Design Decisions:
    - Module-level tuple over DB table: the catalog is curated by hand and versioned with code
      (ADR: callers may still pass their own sequence to the orchestrator)
"""

from collections.abc import Sequence

from verdict_engine.core.domain_types import Candidate, TOP_N


CANDIDATES: tuple[Candidate, ...] = (
    # Defense / aerospace
    Candidate("012450", "Hanwha Aerospace", "Defense", ("defense", "space", "engines", "AI")),
    Candidate("047810", "Korea Aerospace Industries", "Defense", ("defense", "aircraft", "KF-21")),
    Candidate("079550", "LIG Nex1", "Defense", ("defense", "missiles", "weapons")),
    # Semiconductors
    Candidate("000660", "SK hynix", "Semiconductors", ("semiconductors", "AI", "HBM")),
    Candidate("005930", "Samsung Electronics", "Semiconductors", ("semiconductors", "AI", "foundry")),
    Candidate("042700", "Hanmi Semiconductor", "Semiconductor Equipment", ("equipment", "HBM", "AI")),
    Candidate("058470", "Leeno Industrial", "Semiconductor Equipment", ("equipment", "test")),
    Candidate("039030", "EO Technics", "Semiconductor Equipment", ("equipment", "laser", "HBM")),
    # Power equipment
    Candidate("298040", "Hyosung Heavy Industries", "Power Equipment", ("power", "transformers", "AI")),
    Candidate("267260", "HD Hyundai Electric", "Power Equipment", ("power", "transformers")),
    # Robotics
    Candidate("443060", "Rainbow Robotics", "AI/Robotics", ("robotics", "humanoid", "AI")),
    Candidate("454910", "Doosan Robotics", "AI/Robotics", ("robotics", "cobots", "AI")),
    # Bio
    Candidate("207940", "Samsung Biologics", "Bio", ("bio", "CMO", "ADC")),
    Candidate("068270", "Celltrion", "Bio", ("bio", "biosimilars")),
    Candidate("326030", "SK Biopharmaceuticals", "Bio", ("bio", "new drugs", "CNS")),
    # Autos
    Candidate("005380", "Hyundai Motor", "Autos", ("autos", "EV", "hydrogen")),
    Candidate("000270", "Kia", "Autos", ("autos", "EV", "EV9")),
    # Internet / platforms
    Candidate("035420", "NAVER", "Internet", ("platform", "AI", "cloud")),
    Candidate("035720", "Kakao", "Internet", ("platform", "AI", "content")),
    Candidate("259960", "Krafton", "Games", ("games", "PUBG", "AI")),
    # Batteries
    Candidate("373220", "LG Energy Solution", "Batteries", ("batteries", "EV", "ESS")),
    Candidate("006400", "Samsung SDI", "Batteries", ("batteries", "EV", "solid-state")),
    # Financials
    Candidate("105560", "KB Financial Group", "Financials", ("banks", "dividends", "value-up")),
    Candidate("086790", "Hana Financial Group", "Financials", ("banks", "dividends", "value-up")),
    # Entertainment
    Candidate("352820", "HYBE", "Entertainment", ("entertainment", "K-POP", "AI")),
    # Shipbuilding
    Candidate("010140", "HD Korea Shipbuilding & Offshore", "Shipbuilding", ("shipbuilding", "LNG carriers")),
    Candidate("329180", "HD Hyundai Heavy Industries", "Shipbuilding", ("shipbuilding", "offshore")),
    # Consumer
    Candidate("051900", "LG H&H", "Cosmetics", ("cosmetics", "China", "reopening")),
    # Materials
    Candidate("003670", "POSCO Holdings", "Materials", ("steel", "battery materials", "lithium")),
    Candidate("357780", "Soulbrain", "Semiconductor Materials", ("materials", "electrolyte")),
)


def fallback_picks(candidates: Sequence[Candidate]) -> tuple[str, ...]:
    """Deterministic default: first five candidates in catalog order."""
    return tuple(c.symbol for c in candidates[:TOP_N])


def index_by_symbol(candidates: Sequence[Candidate]) -> dict[str, Candidate]:
    return {c.symbol: c for c in candidates}
