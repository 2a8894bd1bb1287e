from typing import Final

ISO_DATE_FORMAT: Final[str] = "%Y-%m-%d"

# --- Categories ---------------------------------------------------------
OTHER_CATEGORY_ID: Final[str] = "cat_007"
OTHER_CATEGORY_NAME: Final[str] = "other"
CATEGORY_ID_PREFIX: Final[str] = "cat_"
DEFAULT_CATEGORY_EMOJI: Final[str] = "📦"
DEFAULT_CATEGORIES: Final[list[dict]] = [
    {"id": "cat_001", "name": "produce", "emoji": "🥬", "order": 0, "isDefault": True, "displayName": "Produce"},
    {"id": "cat_002", "name": "dairy", "emoji": "🥛", "order": 1, "isDefault": True, "displayName": "Dairy"},
    {"id": "cat_003", "name": "meat", "emoji": "🥩", "order": 2, "isDefault": True, "displayName": "Meat"},
    {"id": "cat_004", "name": "pantry", "emoji": "🥫", "order": 3, "isDefault": True, "displayName": "Pantry"},
    {"id": "cat_005", "name": "frozen", "emoji": "🧊", "order": 4, "isDefault": True, "displayName": "Frozen"},
    {"id": "cat_006", "name": "bakery", "emoji": "🍞", "order": 5, "isDefault": True, "displayName": "Bakery"},
    {"id": "cat_007", "name": "other", "emoji": "📦", "order": 6, "isDefault": True, "displayName": "Other"},
]

# --- First-run sample data -----------------------------------------------
SAMPLE_PRODUCTS: Final[list[dict]] = [
    {"id": "1", "name": "bananas", "category": "cat_001"},
    {"id": "2", "name": "milk", "category": "cat_002"},
    {"id": "3", "name": "bread", "category": "cat_006"},
    {"id": "4", "name": "olive oil", "category": "cat_004", "pantry": True, "inStock": True},
    {"id": "5", "name": "chicken breast", "category": "cat_003"},
]
SAMPLE_RECIPES: Final[list[dict]] = [
    {
        "id": "1",
        "name": "Simple Pasta",
        "description": "Quick pasta with olive oil",
        "preparation": "1. Boil water\n2. Add pasta\n3. Cook 8-10 minutes\n4. Drain and add olive oil",
        "ingredients": [{"productId": "4", "productName": "olive oil", "quantity": 2, "unit": "tbsp"}],
        "persons": 2,
        "metadata": {"cuisine": "Italian", "mainIngredient": "pasta", "season": "all-year"},
    },
    {
        "id": "2",
        "name": "Chicken Salad",
        "description": "Grilled chicken with greens",
        "preparation": "1. Cook chicken\n2. Chop lettuce\n3. Mix together",
        "ingredients": [{"productId": "5", "productName": "chicken breast", "quantity": 300, "unit": "g"}],
        "persons": 2,
        "metadata": {"cuisine": "American", "mainIngredient": "chicken", "season": "all-year"},
    },
]

# --- Local storage keys ----------------------------------------------------
CATEGORIES_KEY: Final[str] = "categories"
PRODUCTS_KEY: Final[str] = "allProducts"
RECIPES_KEY: Final[str] = "recipes"
MEAL_PLANS_KEY: Final[str] = "mealPlans"
LEGACY_SHOPPING_KEY: Final[str] = "shoppingItems"
LEGACY_PANTRY_KEY: Final[str] = "standardItems"

# --- Remote collections ----------------------------------------------------
REMOTE_PRODUCTS: Final[str] = "products"
REMOTE_RECIPES: Final[str] = "recipes"
REMOTE_MEAL_PLAN: Final[str] = "mealPlan"

# --- Meal planning -----------------------------------------------------------
MEAL_TYPES: Final[tuple[str, ...]] = ("breakfast", "lunch", "dinner")
DAY_NAMES: Final[tuple[str, ...]] = ("Saturday", "Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday")
TIME_RANGES: Final[tuple[str, ...]] = ("all", "future", "todayFuture")
UNKNOWN_RECIPE: Final[str] = "Unknown Recipe"
SIMPLE_MEAL_UNIT: Final[str] = "portion"

# --- Recipes -------------------------------------------------------------------
DEFAULT_PERSONS: Final[int] = 4
DEFAULT_COOK_TIME: Final[str] = "30 min"
DEFAULT_PREP_TIME: Final[str] = "15 min"
DEFAULT_CUISINE: Final[str] = "International"
DEFAULT_MAIN_INGREDIENT: Final[str] = "mixed"
DEFAULT_SEASON: Final[str] = "all-year"
MAX_UNIT_LENGTH: Final[int] = 10
BASE_UNITS: Final[tuple[str, ...]] = (
    "g", "kg", "ml", "cl", "l", "tbsp", "tsp", "cup", "pcs", "pinch",
    "clove", "slice", "bunch", "can", "pack",
)
BASE_CUISINES: Final[tuple[str, ...]] = (
    "International", "Italian", "American", "Asian", "Dutch", "French", "Mexican", "Indian",
)
BASE_SEASONS: Final[tuple[str, ...]] = ("all-year", "spring", "summer", "autumn", "winter")

# --- Ingredient free-text parsing ---------------------------------------------
UNIT_ALIASES: Final[dict[str, str]] = {
    "cups": "cup", "cup": "cup",
    "tablespoons": "tbsp", "tablespoon": "tbsp", "tbsp": "tbsp", "tbs": "tbsp",
    "teaspoons": "tsp", "teaspoon": "tsp", "tsp": "tsp",
    "grams": "g", "gram": "g", "g": "g", "gr": "g",
    "kilograms": "kg", "kilogram": "kg", "kg": "kg", "kgs": "kg",
    "milliliters": "ml", "milliliter": "ml", "ml": "ml", "mls": "ml",
    "centiliters": "cl", "centiliter": "cl", "cl": "cl", "cls": "cl",
    "liters": "l", "liter": "l", "l": "l", "ls": "l",
    "pieces": "pcs", "piece": "pcs", "pcs": "pcs", "pc": "pcs",
    "pinch": "pinch", "pinches": "pinch",
    # Dutch
    "el": "tbsp", "eetlepel": "tbsp", "eetlepels": "tbsp",
    "tl": "tsp", "theelepel": "tsp", "theelepels": "tsp",
}
DESCRIPTOR_WORDS: Final[tuple[str, ...]] = (
    "fresh", "dried", "chopped", "sliced", "ground", "whole", "raw", "cooked",
    "vers", "gedroogd", "gehakt", "gesneden", "gemalen", "heel", "rauw", "gekookt",
)
NAME_PREFIXES: Final[tuple[str, ...]] = ("of", "the", "de", "het")

# --- Preparation timers ---------------------------------------------------------
TIMER_MAX_SECONDS: Final[int] = 4 * 3600
TIMER_CONTEXT_BEFORE: Final[int] = 40
TIMER_CONTEXT_AFTER: Final[int] = 60
TIMER_FOOD_WORDS: Final[tuple[str, ...]] = (
    "chicken", "beef", "pork", "fish", "bread", "cake", "sauce", "rice", "pasta",
    "vegetables", "vegetable", "meat", "dough", "soup", "stew",
)
TIMER_ACTIONS: Final[tuple[str, ...]] = (
    "bake", "boil", "simmer", "fry", "roast", "cook", "rest", "chill", "marinate",
    "steep", "sauté", "grill", "steam", "poach", "broil",
)
TIMER_STOP_WORDS: Final[tuple[str, ...]] = (
    "the", "and", "or", "in", "on", "at", "to", "for", "with", "until", "then", "while",
)
