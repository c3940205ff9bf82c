"""
Category taxonomy for Consumer Pulse news.

Keyword lists drive the categorizer's scoring. Declaration order matters:
when two categories score the same, the one declared first wins.
"""
from pulse_news.models.domain import Category

CATEGORY_KEYWORDS: dict[Category, list[str]] = {
    Category.CRYPTO: [
        "crypto", "bitcoin", "ethereum", "blockchain", "cryptocurrency", "btc", "eth",
        "dogecoin", "litecoin", "ripple", "cardano", "solana", "binance", "coinbase",
        "defi", "nft", "web3", "metaverse", "mining", "wallet", "exchange", "token",
        "altcoin", "stablecoin", "satoshi", "hodl", "doge", "shiba", "polygon",
        "chainlink", "uniswap", "opensea", "metamask", "ledger", "trezor",
    ],
    Category.FINANCIAL: [
        "stock", "market", "trading", "investment", "finance", "financial", "economy",
        "economic", "bank", "banking", "wall street", "nasdaq", "dow jones", "s&p 500",
        "earnings", "revenue", "profit", "loss", "shares", "dividend", "portfolio",
        "inflation", "interest rate", "fed", "federal reserve", "gdp", "recession",
        "bull market", "bear market", "ipo", "merger", "acquisition", "forex", "currency",
        "bond", "commodity", "gold", "silver", "oil", "futures", "options", "etf",
        "mutual fund", "hedge fund", "venture capital", "private equity", "valuation",
        "business",
    ],
    Category.TECHNOLOGY: [
        "technology", "tech", "ai", "artificial intelligence", "machine learning",
        "software", "hardware", "computer", "internet", "digital", "cyber", "data",
        "cloud", "startup", "silicon valley", "google", "apple", "microsoft", "amazon",
        "facebook", "meta", "twitter", "tesla", "spacex", "innovation", "robotics",
        "automation", "algorithm", "programming", "coding", "app", "mobile", "smartphone",
        "tablet", "laptop", "processor", "chip", "semiconductor", "quantum", "virtual reality",
        "augmented reality", "iot", "internet of things", "cybersecurity", "hacking",
    ],
    Category.HEALTH: [
        "health", "medical", "medicine", "doctor", "hospital", "patient", "disease",
        "virus", "covid", "pandemic", "vaccine", "treatment", "therapy", "drug",
        "pharmaceutical", "clinical", "research", "study", "cancer", "diabetes",
        "heart", "mental health", "wellness", "fitness", "nutrition", "diet",
        "surgery", "diagnosis", "symptom", "epidemic", "outbreak", "immunity",
        "antibody", "gene", "genetic", "dna", "biotech", "biotechnology",
    ],
    Category.SPORTS: [
        "sport", "sports", "football", "basketball", "baseball", "soccer", "tennis",
        "golf", "hockey", "olympics", "fifa", "nfl", "nba", "mlb", "nhl", "uefa",
        "championship", "tournament", "match", "game", "player", "team", "coach",
        "athlete", "stadium", "league", "season", "playoff", "world cup",
        "super bowl", "world series", "finals", "premier league", "la liga",
        "bundesliga", "serie a", "champions league", "euro", "copa america",
    ],
    Category.POLITICS: [
        "politics", "political", "election", "government", "congress", "senate",
        "president", "parliament", "minister", "legislation", "democrat", "republican",
        "campaign", "vote", "voters", "policy", "white house", "supreme court",
        "governor", "diplomacy", "sanctions",
    ],
    Category.ENTERTAINMENT: [
        "entertainment", "movie", "film", "music", "celebrity", "hollywood", "netflix",
        "album", "concert", "television", "tv show", "actor", "actress", "box office",
        "streaming", "oscars", "grammy", "festival", "premiere", "singer",
    ],
}


def get_category_keywords() -> dict[Category, list[str]]:
    """Get the keyword table in declaration order."""
    return CATEGORY_KEYWORDS
