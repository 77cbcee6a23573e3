#!/usr/bin/env python3
"""Demonstration of the query builder.

Builds a few queries and prints the documents they render to. Pass an
endpoint URL as the first argument to also run the batched query.
"""

import asyncio
import sys

from gql_getit import Getit, GraphQLEnum, Query


def build(query: Query) -> Query:
    owner = (
        Query()
        .name("owner")
        .comment("current owner only\nhistory is a separate query")
        .where("current", True)
        .select("first", "last", {"address": ["city", "zip"]})
    )
    second = (
        Query()
        .name("NearestDealer")
        .alias("backup")
        .where({"zip": "10001", "status": GraphQLEnum("OPEN")})
        .select("distance", "rating")
    )
    return (
        query
        .name("NearestDealer")
        .alias("closest")
        .where("zip", "91403")
        .where("make", "aston martin")
        .select("distance", "rating", owner)
        .batch(second)
    )


async def run(url: str):
    async with Getit(url) as getit:
        query = build(getit.query())
        result = await query.get()
        print(result)
        if query.has_errors():
            for error in query.errors:
                print(f"error: {error.message}")


def main():
    print("=== Rendered selection ===\n")
    query = build(Query())
    print(query)

    print("\n=== Full document ===\n")
    print(query.document())

    if len(sys.argv) > 1:
        print(f"\n=== Result from {sys.argv[1]} ===\n")
        asyncio.run(run(sys.argv[1]))


if __name__ == "__main__":
    main()
