"""
Constants for the arena ladder.
"""

# Duel format: best of 5, first to 3
LEGS_PER_DUEL = 5
LEGS_TO_WIN = 3
VALID_SCORES = {(3, 0), (3, 1), (3, 2), (0, 3), (1, 3), (2, 3)}

# Win probability model
BASE_WIN_PROBABILITY = 0.5
LEVEL_PROB_BOOST = 0.02
SKILL_PROB_BOOST = 0.02
FAVOR_PROB_BOOST = 0.05
INSPIRED_PROB_BOOST = 0.05
INSPIRATION_CHANCE = 0.05
MIN_WIN_PROBABILITY = 0.10
MAX_WIN_PROBABILITY = 0.90

# Duel sides
FIRST = 1
SECOND = 2
SIDE_NAMES = {FIRST: "FIRST", SECOND: "SECOND"}

# Experience and levelling
XP_PER_WIN = 1
BASE_XP_NEEDED = 5          # Level 1 needs 5 XP
XP_INCREMENT_PER_LEVEL = 5  # Each level needs 5 more than the last
SKILL_CHANCE_ON_LEVEL_UP = 0.15

# Rarity roll thresholds (cumulative)
LEGENDARY_CHANCE = 0.01
SUPREME_CHANCE = 0.03
ECCENTRIC_CHANCE = 0.08

# Season / league
LEAGUE_RESET_LIMIT = 100
MAX_DIVISIONS = 3
PROMOTION_SLOTS = 2
RELEGATION_SLOTS = 2
TOP_RELEGATION_SLOTS = 1    # Division 1 only sends its bottom one down

# World duels against generated opponents
SYNTHETIC_MIN_LEVEL = 2
SYNTHETIC_MAX_LEVEL = 13
SYNTHETIC_MAX_SKILLS = 2
SYNTHETIC_NAMES = ["Shadow", "Golem", "Druid", "Archer", "Viper", "Titan"]

# Tower climb: one bot per floor, floor N fought at level N
TOWER_FLOORS = 10

SKILL_NAMES_POOL = [
    "Critical Strike", "Master Dodge", "Brute Force", "Lightning Reflexes",
    "Iron Skin", "Eagle Eye", "Calm Mind", "Unleashed Fury",
    "Fleeting Shadow", "Spirit Bond",
]
