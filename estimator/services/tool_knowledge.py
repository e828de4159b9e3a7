"""Tool knowledge base for the tool advisor.

Reference data for the hire tools the advisor can recommend: descriptions,
safety requirements, pro tips, manual alternatives, used purchase prices
and baseline indicative hire rates (national chain averages).
"""

from typing import Any, Dict


# =============================================================================
# TOOL KNOWLEDGE
# =============================================================================

# Keys are tool ids. `buy_vs_rent` marks tools that get purchase advice.
TOOL_KNOWLEDGE: Dict[str, Dict[str, Any]] = {
    "mini_excavator_1_5t": {
        "name": "Mini Excavator (1.5T)",
        "category": "Excavators & Diggers",
        "description": "Compact tracked excavator for garden and residential groundwork",
        "safety_requirements": [
            "Underground service detection essential",
            "Exclusion zone barriers required",
            "Hi-vis, hard hat and steel toe boots mandatory",
            "Daily machine inspection checklist",
        ],
        "pro_tips": [
            "Book Friday pickup for weekend rate (often 30% saving)",
            "Hire rubber track pads to protect lawns and block paving",
            "Get a hydraulic breaker attachment for hard ground",
        ],
        "alternatives": {
            "manual": {
                "tool": "Spade and mattock",
                "when": "Very small digs under 2m³ with easy access",
            }
        },
        "used_price_range": "£8,000-£12,000",
        "buy_vs_rent": True,
    },
    "excavator_3t": {
        "name": "3 Tonne Excavator",
        "category": "Excavators & Diggers",
        "description": "Midi excavator with the reach for deeper foundations and pools",
        "safety_requirements": [
            "Underground service detection essential",
            "Exclusion zone barriers required",
            "CPCS/NPORS ticket required on commercial sites",
        ],
        "pro_tips": [
            "Check gate and access widths before delivery",
            "Plan spoil removal before the machine arrives",
        ],
        "used_price_range": "£15,000-£25,000",
        "buy_vs_rent": True,
    },
    "excavator_5t": {
        "name": "5 Tonne Excavator",
        "category": "Excavators & Diggers",
        "description": "Heavy excavator for basements and large-volume digs",
        "safety_requirements": [
            "Underground service detection essential",
            "Exclusion zone barriers required",
            "CPCS/NPORS ticket required on commercial sites",
            "Temporary works design for deep excavations",
        ],
        "pro_tips": [
            "Consider an operated hire for basement digs",
            "Arrange grab lorries in advance for spoil",
        ],
        "used_price_range": "£25,000-£40,000",
        "buy_vs_rent": True,
    },
    "dumper_1t": {
        "name": "1 Tonne Dumper",
        "category": "Material Handling",
        "description": "High-tip dumper for moving spoil and aggregates around site",
        "safety_requirements": [
            "Seat belt must be worn with ROPS raised",
            "Never carry passengers",
        ],
        "pro_tips": [
            "A high-tip model can load straight into a skip",
        ],
        "alternatives": {
            "manual": {
                "tool": "Wheelbarrow",
                "when": "Short runs and small volumes of spoil",
            }
        },
    },
    "concrete_mixer_110l": {
        "name": "Concrete Mixer (110L)",
        "category": "Concreting",
        "description": "110L drum mixer for small to medium concrete pours",
        "safety_requirements": [
            "Cement burns - wear gloves and eye protection",
            "Keep hands clear of the rotating drum",
        ],
        "pro_tips": [
            "Add water first, then aggregate, then cement",
            "Clean the drum with gravel and water before it sets",
            "Hire a second mixer if pouring more than 1m³",
        ],
        "alternatives": {
            "manual": {
                "tool": "Mixing by hand on a board",
                "when": "Pours under 0.1m³ such as fence post footings",
            }
        },
        "used_price_range": "£150-£300",
        "buy_vs_rent": True,
    },
    "ready_mix": {
        "name": "Ready Mix Concrete Delivery",
        "category": "Concrete Supply",
        "description": "Volumetric or drum ready-mix delivered to site",
        "safety_requirements": [
            "Cement burns - wear gloves and eye protection",
        ],
        "pro_tips": [
            "Have enough helpers ready - the pour waits for no one",
            "Check truck access and pump requirements when ordering",
        ],
    },
    "vibrating_poker": {
        "name": "Concrete Vibrating Poker",
        "category": "Concrete Tools",
        "description": "Poker vibrator that removes trapped air from fresh concrete",
        "safety_requirements": [
            "Hearing protection required",
            "Use an RCD on electric models",
        ],
        "pro_tips": [
            "Insert vertically and withdraw slowly",
        ],
    },
    "breaker_medium": {
        "name": "Medium Electric Breaker",
        "category": "Breaking & Drilling",
        "description": "Electric breaker for concrete and masonry demolition",
        "safety_requirements": [
            "Hearing protection and safety glasses required",
            "Monitor hand-arm vibration exposure time",
            "Use dust suppression when breaking concrete",
        ],
        "pro_tips": [
            "Let the weight of the tool do the work",
            "Start at an edge and work back in small bites",
        ],
        "alternatives": {
            "manual": {
                "tool": "Sledgehammer and bolster chisel",
                "when": "Thin slabs or a few square metres of paving",
            }
        },
        "used_price_range": "£300-£600",
        "buy_vs_rent": True,
    },
    "generator_3kva": {
        "name": "3kVA Generator",
        "category": "Power Generation",
        "description": "Petrol generator for running electric tools away from mains",
        "safety_requirements": [
            "Never run in an enclosed space - carbon monoxide risk",
            "Refuel only when the engine is cool",
        ],
        "pro_tips": [
            "Check the tool's start-up load against the generator rating",
            "Use a 110V transformer for site tools",
        ],
        "used_price_range": "£400-£800",
        "buy_vs_rent": True,
    },
}


# Baseline daily/weekly hire rates (national chain averages)
INDICATIVE_PRICING: Dict[str, Dict[str, float]] = {
    "mini_excavator_1_5t": {"daily": 95, "weekly": 285},
    "excavator_3t": {"daily": 140, "weekly": 420},
    "excavator_5t": {"daily": 190, "weekly": 570},
    "concrete_mixer_110l": {"daily": 32, "weekly": 96},
    "dumper_1t": {"daily": 75, "weekly": 225},
    "breaker_medium": {"daily": 45, "weekly": 135},
    "generator_3kva": {"daily": 40, "weekly": 120},
    "vibrating_poker": {"daily": 25, "weekly": 75},
}

DEFAULT_INDICATIVE_PRICING: Dict[str, float] = {"daily": 50, "weekly": 150}

PRICE_NOTE = "Prices are indicative. Local suppliers may offer better rates."
