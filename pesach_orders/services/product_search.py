# =========================
# FILE: pesach_orders/services/product_search.py
# (phonetic folding + skeleton match + edit-distance fallback)
# =========================
from __future__ import annotations

import logging
import re
import unicodedata
from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

from pesach_orders.domain.entities import Catalog, Category, Product

log = logging.getLogger("services.product_search")

_QUOTES_RE = re.compile(r"['’`\"]")
_NON_ALNUM_RE = re.compile(r"[^a-z0-9\s]")
_WS_RE = re.compile(r"\s+")
_VOWELS_RE = re.compile(r"[aeiou]")

# Ordered transliteration folds (Hebrew/Yiddish romanizations -> one spelling).
# Applied left to right over the whole string.
FOLD_RULES: Tuple[Tuple[str, str], ...] = (
    (r"ch|kh", "h"),
    (r"ph", "f"),
    (r"tz|ts", "z"),
    (r"aa|ah", "a"),
    (r"ee|ei|ey", "i"),
    (r"oo|ou", "u"),
    (r"oi|oy", "i"),
    (r"w", "v"),
    (r"q", "k"),
)
_COMPILED_FOLD_RULES = tuple((re.compile(p), r) for p, r in FOLD_RULES)

EXACT_PHRASE_BONUS = 200
EXACT_PHRASE_MAX_PENALTY = 100
SKELETON_BONUS = 65
SKELETON_MIN_LEN = 3
TOKEN_EXACT = 80
TOKEN_PREFIX = 55
TOKEN_CONTAINS = 38
TOKEN_FUZZY_BASE = 32
TOKEN_FUZZY_STEP = 8


def _strip_accents(s: str) -> str:
    s = unicodedata.normalize("NFKD", s)
    return "".join(ch for ch in s if unicodedata.category(ch) != "Mn")


def apply_fold_rules(text: str) -> str:
    # Repeat the pass until stable so folding is idempotent
    # ("kch" -> "kh" -> "h"). Every rule shortens the text or removes a w/q,
    # so this terminates.
    while True:
        out = text
        for pattern, repl in _COMPILED_FOLD_RULES:
            out = pattern.sub(repl, out)
        if out == text:
            return out
        text = out


def fold_for_search(value: str) -> str:
    t = _strip_accents(value or "").lower()
    t = _QUOTES_RE.sub("", t)
    t = t.replace("&", " and ")
    t = _NON_ALNUM_RE.sub(" ", t)
    t = apply_fold_rules(t)
    return _WS_RE.sub(" ", t).strip()


def to_skeleton(value: str) -> str:
    return _WS_RE.sub("", _VOWELS_RE.sub("", value))


def levenshtein(a: str, b: str) -> int:
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)

    prev = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        curr = [i] + [0] * len(b)
        for j, cb in enumerate(b, start=1):
            cost = 0 if ca == cb else 1
            curr[j] = min(prev[j] + 1, curr[j - 1] + 1, prev[j - 1] + cost)
        prev = curr
    return prev[-1]


@dataclass(frozen=True)
class IndexedProduct:
    category_name: str
    product: Product
    haystack: str
    tokens: Tuple[str, ...]
    token_skeletons: Tuple[str, ...]


@dataclass(frozen=True)
class ProductSearchIndex:
    entries: Tuple[IndexedProduct, ...] = ()

    def __len__(self) -> int:
        return len(self.entries)

    def search(self, raw_query: str) -> List[Category]:
        return search_catalog(self, raw_query)


def make_haystack(product: Product) -> str:
    return fold_for_search(" ".join([product.name, product.size or ""]))


def build_product_search_index(catalog: Catalog) -> ProductSearchIndex:
    entries: List[IndexedProduct] = []
    for category in catalog:
        for product in category.products:
            haystack = make_haystack(product)
            tokens = tuple(t for t in haystack.split(" ") if t)
            entries.append(
                IndexedProduct(
                    category_name=category.name,
                    product=product,
                    haystack=haystack,
                    tokens=tokens,
                    token_skeletons=tuple(to_skeleton(t) for t in tokens),
                )
            )
    log.info("ProductSearchIndex built | entries=%d", len(entries))
    return ProductSearchIndex(tuple(entries))


def _token_score(query_token: str, tokens: Sequence[str]) -> int:
    best = 0
    limit = max(1, len(query_token) // 3)
    for token in tokens:
        if token == query_token:
            best = max(best, TOKEN_EXACT)
        elif token.startswith(query_token):
            best = max(best, TOKEN_PREFIX)
        elif query_token in token:
            best = max(best, TOKEN_CONTAINS)
        else:
            distance = levenshtein(query_token, token)
            if distance <= limit:
                best = max(best, TOKEN_FUZZY_BASE - distance * TOKEN_FUZZY_STEP)
    return best


def score_entry(entry: IndexedProduct, query: str) -> int:
    """Score an index entry against an already folded query; 0 means no match."""
    query_tokens = [t for t in query.split(" ") if t]
    if not query_tokens:
        return 0

    score = 0

    pos = entry.haystack.find(query)
    if pos >= 0:
        score += EXACT_PHRASE_BONUS - min(pos, EXACT_PHRASE_MAX_PENALTY)

    query_skeleton = to_skeleton(query)
    if len(query_skeleton) >= SKELETON_MIN_LEN:
        if any(query_skeleton in sk for sk in entry.token_skeletons):
            score += SKELETON_BONUS

    for qt in query_tokens:
        score += _token_score(qt, entry.tokens)

    return score


def search_catalog(index: ProductSearchIndex, raw_query: str) -> List[Category]:
    query = fold_for_search(raw_query)
    if not query:
        return []

    by_category: Dict[str, List[Tuple[int, Product]]] = {}
    for entry in index.entries:
        score = score_entry(entry, query)
        if score <= 0:
            continue
        by_category.setdefault(entry.category_name, []).append((score, entry.product))

    results: List[Category] = []
    for name, scored in by_category.items():
        scored.sort(key=lambda sp: (-sp[0], sp[1].sort_index))
        results.append(Category(name=name, products=tuple(p for _, p in scored)))
    results.sort(key=lambda c: (c.name.casefold(), c.name))
    return results
