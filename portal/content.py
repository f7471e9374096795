"""
Investor pitch content.

Static figures in PHP; everything monetary is formatted for the
visitor's chosen currency at render time.
"""

from pydantic import BaseModel

from portal.currency import Currency, format_currency_range, format_currency_value


class FundingTier(BaseModel):
    title: str
    amount: str
    benefit: str


class RevenueRow(BaseModel):
    year: int
    hospitality: str
    hardware: str
    farming: str
    other: str
    total: str


class VillaRow(BaseModel):
    year: int
    cumulative: int
    new: int
    occupancy: str
    adr: str


class KeyMetric(BaseModel):
    value: str
    label: str
    sublabel: str


# (year, hospitality, hardware, farming, other, total)
REVENUE_PROJECTIONS = [
    (2026, 17_000_000, 8_000_000, 1_500_000, 1_000_000, 27_500_000),
    (2027, 54_000_000, 20_000_000, 4_000_000, 2_000_000, 80_000_000),
    (2028, 98_000_000, 37_000_000, 8_000_000, 5_500_000, 148_500_000),
    (2029, 125_000_000, 48_000_000, 10_000_000, 7_000_000, 190_000_000),
    (2030, 145_000_000, 55_000_000, 12_000_000, 8_000_000, 220_000_000),
]

# (year, cumulative villas, new villas, occupancy, average daily rate)
VILLA_ROLLOUT = [
    (2026, 5, 5, "60%", 12_000),
    (2027, 20, 15, "66%", 12_600),
    (2028, 35, 15, "70%", 13_230),
    (2029, 50, 15, "70%", 13_890),
    (2030, 65, 15, "72%", 14_585),
]

EBITDA_PER_VILLA = 10_000_000


def funding_tiers(currency: Currency) -> list[FundingTier]:
    return [
        FundingTier(
            title="Pilot Investor",
            amount=format_currency_range(2_500_000, 5_000_000, currency),
            benefit=(
                "Structured as a Convertible Note or SAFE agreement, offering "
                "premium terms at the next funding stage."
            ),
        ),
        FundingTier(
            title="SIRV Villa Owner",
            amount=f"{format_currency_value(12_500_000, currency)}+",
            benefit=(
                "Acquire a titled eco-villa asset linked to the Special Investor's "
                "Resident Visa (SIRV) program."
            ),
        ),
        FundingTier(
            title="Equity Partner",
            amount=f"{format_currency_value(25_000_000, currency)}+",
            benefit=(
                "Direct equity stake in the holding company, including profit "
                "sharing, and a potential board seat."
            ),
        ),
    ]


def revenue_rows(currency: Currency) -> list[RevenueRow]:
    return [
        RevenueRow(
            year=year,
            hospitality=format_currency_value(hospitality, currency),
            hardware=format_currency_value(hardware, currency),
            farming=format_currency_value(farming, currency),
            other=format_currency_value(other, currency),
            total=format_currency_value(total, currency),
        )
        for year, hospitality, hardware, farming, other, total in REVENUE_PROJECTIONS
    ]


def villa_rows(currency: Currency) -> list[VillaRow]:
    return [
        VillaRow(
            year=year,
            cumulative=cumulative,
            new=new,
            occupancy=occupancy,
            adr=format_currency_value(adr, currency),
        )
        for year, cumulative, new, occupancy, adr in VILLA_ROLLOUT
    ]


def key_metrics(currency: Currency) -> list[KeyMetric]:
    return [
        KeyMetric(value="70%", label="Target Occupancy", sublabel="Year 3 Average"),
        KeyMetric(
            value=format_currency_value(12_000, currency),
            label="Average Daily Rate",
            sublabel="Peak Season Estimate",
        ),
        KeyMetric(value="30-35%", label="EBITDA Margin", sublabel="Projected at Maturity"),
        KeyMetric(value="18-20%", label="Investor IRR", sublabel="Illustrative Base Case"),
    ]


def ebitda_note(currency: Currency) -> str:
    return f"EBITDA/villa ≈ {format_currency_value(EBITDA_PER_VILLA, currency)} at maturity"
