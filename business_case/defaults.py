"""Default business-case configuration (salary table, depreciation rules, category map)."""

from __future__ import annotations

DEFAULT_DISCOUNT_RATE = 0.14

DEFAULT_CONFIG = {
    "depreciation_rules": [
        # Capital-expense groups.
        {"label": "External Resources", "useful_life_years": 5},
        {"label": "IT COSTS - Software", "useful_life_years": 5},
        {"label": "IT COSTS - Hardware", "useful_life_years": 4},
        {"label": "Furniture and Fixtures", "useful_life_years": 10},
        {"label": "Safekeeping Cost", "useful_life_years": 10},
        {"label": "Office Equipment Costs", "useful_life_years": 5},
        {"label": "Other Costs", "useful_life_years": 5},
        {"label": "Premises Costs", "useful_life_years": 10},
        # Capex / prepaid sub-categories.
        {"label": "Hardware", "useful_life_years": 4},
        {"label": "Software", "useful_life_years": 5},
        {"label": "Consultancy / Vendor", "useful_life_years": 5},
        {"label": "Premises / Real Estate", "useful_life_years": 10},
        {"label": "Furniture and Fixtures (Capex)", "useful_life_years": 10},
        {"label": "Other Capital", "useful_life_years": 5},
        {"label": "Prepaid Software Licences", "useful_life_years": 3},
        {"label": "Prepaid Maintenance", "useful_life_years": 1},
        {"label": "Prepaid Services", "useful_life_years": 1},
    ],
    "depreciation_category_map": {
        "Capital": [
            "Hardware",
            "Software",
            "Consultancy / Vendor",
            "Premises / Real Estate",
            "Furniture and Fixtures (Capex)",
            "Other Capital",
        ],
        "Prepaid": [
            "Prepaid Software Licences",
            "Prepaid Maintenance",
            "Prepaid Services",
        ],
    },
    "pay_grade_monthly_salary": {
        "G1": 2500.0,
        "G2": 3200.0,
        "G3": 4000.0,
        "G4": 5000.0,
        "G5": 6500.0,
        "G6": 8000.0,
        "G7": 10000.0,
        "G8": 12500.0,
        "Contractor": 9000.0,
    },
    "discount_rate": DEFAULT_DISCOUNT_RATE,
}
