# File: busbuzz/services/seed.py
"""Static reference data loaded into an empty directory on first read."""

ROUTE_DATA = {
    "S1: VALASARAVAKKAM": {
        "capacity": 55,
        "stops": {
            "Valasaravakkam": "08:00 AM",
            "Alwarthirunagar": "08:15 AM",
            "Virugambakkam": "08:30 AM",
        },
    },
    "S5: TIRUVOTRIYUR": {
        "capacity": 55,
        "stops": {
            "Tiruvottiyur": "07:45 AM",
            "Tollgate": "08:05 AM",
            "Royapuram": "08:25 AM",
        },
    },
    "S2: Porur": {
        "capacity": 45,
        "stops": {
            "Porur Junction": "08:10 AM",
            "DLF IT Park": "08:40 AM",
        },
    },
}

INITIAL_BUSES = [
    {"bus_no": "TN-09-AK-1101", "route": "S1: VALASARAVAKKAM", "capacity": 55, "driver": "R. Murugan", "status": "On Route"},
    {"bus_no": "TN-09-AK-1102", "route": "S1: VALASARAVAKKAM", "capacity": 55, "driver": None, "status": "Idle"},
    {"bus_no": "TN-05-BZ-2201", "route": "S5: TIRUVOTRIYUR", "capacity": 55, "driver": "S. Ramesh", "status": "On Route"},
    {"bus_no": "TN-10-CP-3301", "route": "S2: Porur", "capacity": 45, "driver": "K. Anand", "status": "Maintenance"},
]
