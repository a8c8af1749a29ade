"""Proximity-bounded positional intersection of two tokens' postings."""

from .posting import Token

DEFAULT_PROXIMITY = 1

# Stem given to the synthetic token that holds an intersection result
INTERSECTOR_STEM = "intersector"


def positional_intersect(
    tok_a: Token,
    tok_b: Token,
    proximity: int = DEFAULT_PROXIMITY,
) -> Token | None:
    """
    Find the positions of `tok_a` that lie within `proximity` words of some
    position of `tok_b`, in every document containing both tokens.

    Document lists are merge-walked in ascending id order. Returns a synthetic
    token holding the matching positions of `tok_a`, or None when nothing
    matches.
    """
    if proximity < 0:
        raise ValueError(f"proximity must be >= 0, got {proximity}")

    result = Token(stem=INTERSECTOR_STEM)
    docs_a = tok_a.doc_ids()
    docs_b = tok_b.doc_ids()
    i = j = 0

    while i < len(docs_a) and j < len(docs_b):
        d1, d2 = docs_a[i], docs_b[j]
        if d1 == d2:
            post_a = tok_a.postings[d1]
            post_b = tok_b.postings[d1]
            matched = result.add_document(d1)
            for p in post_a:
                for q in post_b:
                    if abs(p - q) <= proximity:
                        if not matched or matched[-1] != p:
                            matched.append(p)
                    elif q > p:
                        # positions of tok_b only grow from here
                        break
            if not matched:
                result.remove_document(d1)
            i += 1
            j += 1
        elif d1 < d2:
            i += 1
        else:
            j += 1

    return result if result.total_frequency() > 0 else None
