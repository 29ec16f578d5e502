"""
Hand-authored learning guides used by the fallback generator.

Keys are matched as lowercase substrings of the requested topic, in the
order they appear here. Keep the order stable: it decides which guide wins
when a topic mentions more than one key.
"""
from typing import Any, Dict

CURATED_GUIDES: Dict[str, Dict[str, Any]] = {
    "python": {
        "title": "Python Programming",
        "stream": "cse",
        "category": "programming",
        "explanation": (
            "**What is Python?**\n"
            "Python is a high-level, general-purpose programming language known for its readable syntax. "
            "Code is organised with indentation instead of braces, which makes programs look close to plain English.\n\n"
            "**Core Concepts**\n"
            "- **Variables and types:** `int`, `float`, `str`, `bool`, `list`, `dict`, `tuple` and `set` are built in.\n"
            "- **Control flow:** `if`/`elif`/`else`, `for` loops over any iterable, and `while` loops.\n"
            "- **Functions:** defined with `def`, they take parameters and `return` values. "
            "Functions keep code reusable and avoid repetition.\n"
            "- **Modules and packages:** `import` pulls in code from the standard library or third-party packages.\n"
            "- **Classes:** `class` bundles data and behaviour together for object-oriented designs.\n\n"
            "**How Python Runs**\n"
            "Python source is compiled to bytecode and executed by the interpreter, so you can run a script "
            "immediately with `python script.py` or experiment line by line in the interactive shell.\n\n"
            "**Where It Is Used**\n"
            "- Web back-ends (Django, FastAPI, Flask)\n"
            "- Data analysis and machine learning (pandas, NumPy, scikit-learn)\n"
            "- Automation, scripting and testing\n\n"
            "**Learning Tip**\n"
            "Write small programs every day. Reading error messages carefully is one of the fastest ways to improve."
        ),
        "tasks": [
            {
                "title": "Define a simple function",
                "description": "Create a function called 'greet' that takes a name as parameter and prints 'Hello, [name]!'",
                "difficulty": "beginner",
                "hint": "Use def greet(name): and a print statement inside",
            },
            {
                "title": "Work with lists and loops",
                "description": "Write a function that takes a list of numbers and returns a new list containing only the even numbers, squared",
                "difficulty": "intermediate",
                "hint": "Try a list comprehension: [n * n for n in numbers if n % 2 == 0]",
            },
            {
                "title": "Build a word counter",
                "description": "Read a text file and print the 10 most common words with their counts, ignoring case and punctuation",
                "difficulty": "advanced",
                "hint": "collections.Counter and str.lower() will do most of the work",
            },
        ],
        "related_topics": ["Python Functions", "Object-Oriented Programming", "Data Structures"],
    },
    "database": {
        "title": "Database Systems",
        "stream": "cse",
        "category": "databases",
        "explanation": (
            "**What is a Database?**\n"
            "A database is an organised collection of data managed by a database management system (DBMS). "
            "The DBMS stores data durably, answers queries and keeps data consistent when many users work at once.\n\n"
            "**Core Concepts**\n"
            "- **Tables, rows and columns:** relational databases store records as rows in tables with typed columns.\n"
            "- **Keys:** a primary key identifies each row; a foreign key links rows across tables.\n"
            "- **SQL:** `SELECT`, `INSERT`, `UPDATE` and `DELETE` read and change data; `JOIN` combines tables.\n"
            "- **Normalization:** splitting data into related tables removes duplication and update anomalies.\n"
            "- **Indexes:** extra data structures (usually B-trees) that make lookups fast at the cost of slower writes.\n\n"
            "**Transactions and ACID**\n"
            "A transaction groups several statements so they succeed or fail together. "
            "ACID stands for Atomicity, Consistency, Isolation and Durability.\n\n"
            "**Beyond Relational**\n"
            "NoSQL systems such as document stores, key-value stores and graph databases trade some relational "
            "guarantees for flexible schemas or horizontal scale.\n\n"
            "**Learning Tip**\n"
            "Model a small real system (a library, a shop) on paper first, then turn it into tables and queries."
        ),
        "tasks": [
            {
                "title": "Write basic queries",
                "description": "Create a 'students' table with id, name and year columns, insert five rows and select all students in year 2",
                "difficulty": "beginner",
                "hint": "CREATE TABLE, INSERT INTO ... VALUES, then SELECT ... WHERE year = 2",
            },
            {
                "title": "Join related tables",
                "description": "Add a 'courses' table and an 'enrollments' table, then list each student with the names of their courses",
                "difficulty": "intermediate",
                "hint": "enrollments holds two foreign keys; JOIN it to both other tables",
            },
            {
                "title": "Design and normalize a schema",
                "description": "Design a schema for an online shop (customers, orders, products) in third normal form and explain each foreign key",
                "difficulty": "advanced",
                "hint": "Every non-key column should depend on the key, the whole key, and nothing but the key",
            },
        ],
        "related_topics": ["SQL Joins", "Database Normalization", "Transactions and ACID"],
    },
    "photosynthesis": {
        "title": "Photosynthesis",
        "stream": "science",
        "category": "biology",
        "explanation": (
            "**What is Photosynthesis?**\n"
            "Photosynthesis is the process by which plants, algae and some bacteria convert light energy into "
            "chemical energy stored in glucose.\n\n"
            "**The Equation**\n"
            "6CO₂ + 6H₂O + light energy → C₆H₁₂O₆ + 6O₂\n"
            "Carbon dioxide and water, using sunlight, produce glucose and oxygen.\n\n"
            "**Where It Happens**\n"
            "- **Chloroplasts:** organelles in leaf cells where photosynthesis takes place.\n"
            "- **Chlorophyll:** the green pigment that absorbs red and blue light and reflects green.\n\n"
            "**Two Stages**\n"
            "- **Light-dependent reactions** (thylakoid membranes): light splits water, releases oxygen and makes ATP and NADPH.\n"
            "- **Calvin cycle** (stroma): ATP and NADPH are used to fix carbon dioxide into sugars.\n\n"
            "**Why It Matters**\n"
            "Photosynthesis produces the oxygen we breathe and forms the base of nearly every food chain on Earth.\n\n"
            "**Learning Tip**\n"
            "Draw the chloroplast and label where each stage happens and what goes in and out."
        ),
        "tasks": [
            {
                "title": "Identify inputs and outputs",
                "description": "What are the inputs (reactants) and outputs (products) of photosynthesis?",
                "difficulty": "beginner",
                "hint": "Look at the equation",
            },
            {
                "title": "Role of chlorophyll",
                "description": "Explain why leaves are green and what happens to chlorophyll in autumn",
                "difficulty": "intermediate",
                "hint": "Chlorophyll absorbs certain colors of light",
            },
            {
                "title": "Real-world application",
                "description": "How does understanding photosynthesis help in agriculture?",
                "difficulty": "advanced",
                "hint": "Think about plant growth factors",
            },
        ],
        "related_topics": ["Cellular Respiration", "Plant Cell Structure", "Carbon Cycle"],
    },
    "ohm's law": {
        "title": "Ohm's Law",
        "stream": "ece",
        "category": "electronics",
        "explanation": (
            "**What is Ohm's Law?**\n"
            "Ohm's Law states that the current through a conductor between two points is directly proportional "
            "to the voltage across those points.\n\n"
            "**The Formula**\n"
            "V = I × R\n"
            "- **V** is voltage in volts (V)\n"
            "- **I** is current in amperes (A)\n"
            "- **R** is resistance in ohms (Ω)\n\n"
            "**Rearranging**\n"
            "- I = V ÷ R to find current\n"
            "- R = V ÷ I to find resistance\n\n"
            "**Power**\n"
            "Combining Ohm's Law with P = V × I gives P = I²R and P = V²/R, which tell you how much heat a resistor dissipates.\n\n"
            "**Limits**\n"
            "Ohm's Law holds for ohmic conductors at constant temperature. Diodes, transistors and filament bulbs "
            "are non-ohmic: their resistance changes with voltage or temperature.\n\n"
            "**Learning Tip**\n"
            "Always write down the units; most mistakes come from mixing milliamps and amps or kilo-ohms and ohms."
        ),
        "tasks": [
            {
                "title": "Calculate voltage",
                "description": "If current is 2A and resistance is 3Ω, find voltage using Ohm's Law",
                "difficulty": "beginner",
                "hint": "V = I × R",
            },
            {
                "title": "Find resistance",
                "description": "A circuit has 12V voltage and 0.5A current. What is the resistance?",
                "difficulty": "intermediate",
                "hint": "R = V ÷ I",
            },
            {
                "title": "Real circuit problem",
                "description": "A light bulb has resistance of 240Ω. If it's connected to 120V supply, what current flows through it and how much power does it use?",
                "difficulty": "advanced",
                "hint": "First find I, then use P = V × I",
            },
        ],
        "related_topics": ["Kirchhoff's Laws", "Series and Parallel Circuits", "Electrical Power"],
    },
}
