"""
Prompt templates for the structuring and vision collaborators.

Templates use literal placeholders ({order}, {items}) substituted with
str.replace, so tenant-authored templates may contain other braces.
"""

STRUCTURING_PROMPT = """
You are an order processor for a restaurant. You will be given an order in a text format.
Your ONLY task is to EXTRACT data from the order and return the structured output.

CRITICAL INSTRUCTIONS:
- DO NOT perform any calculations or mathematical operations
- DO NOT compute totals, subtotals, taxes, or any numeric values
- DO NOT calculate quantities based on descriptions
- ONLY extract the data exactly as it appears in the order
- If quantities, prices, or totals are printed in the text, extract them as-is
- Item and modifier prices are LINE TOTALS as printed, not unit prices
- "type" is "delivery" or "takeout"

Return a JSON object with the keys: type, check_number, customer
(name, email, phone, address), items (name, quantity, price, modifiers
(name, price)), subtotal_amount, tax_amount, total_amount.

Here is the order:

<order>
{order}
</order>
"""

DEFAULT_VISUAL_VERIFICATION_PROMPT = """You verify prepared food orders by analyzing photos of the packed bag.

Examine the photos and check that every expected item is present.

EXPECTED ORDER ITEMS:
{items}

PROMOTIONS AND COMBOS:
Listed items may be promotions or combos rather than single pieces. A
quantity such as "2x Tacos al Pastor" counts promotion units, and each
unit may contain several physical items (for example 3 tacos each, so 6
tacos in total). Count physical items and compare them with what the
promotion typically contains.

ANALYSIS INSTRUCTIONS:
1. Scan every image; items may be split across photos, wrapped, or partly hidden.
2. For each expected item look for the right kind of food (taco, burrito, side, drink).
   Note visible modifiers when possible.
3. Be conservative: mark an item as found only when reasonably confident.
4. List visible items that are NOT in the expected order as extra_items.
5. Set wrong_order to true only when the photo shows a DIFFERENT order:
   fewer than 30% of the main items match, or the primary food types differ
   (burrito vs taco vs quesadilla). Missing modifiers, off quantities, or some
   missing items whose remaining items DO match are not a wrong order.

Return a JSON object with the keys: match (bool), confidence (0-100),
identified_items (name, found, confidence), missing_items, extra_items,
wrong_order (bool), notes.
"""


def build_structuring_prompt(raw_text: str) -> str:
    """Embed the raw order text in the extraction prompt."""
    return STRUCTURING_PROMPT.replace("{order}", raw_text.strip())
