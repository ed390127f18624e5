"""Example usage of the minigraph library."""

import json

from minigraph import QueryExecutor
from minigraph.tutorials import build_tutorial_schema, populate

# Build the schema and the dataset it runs against
schema = build_tutorial_schema()
store = populate()
executor = QueryExecutor(schema, store)

print("Creating a tutorial...")
result = executor.execute("""
mutation {
    createTutorial(title: "Hello World", id: 5, author: {id: 10, name: "Bastard"}) {
        title
        id
        author {
            id
            name
        }
    }
}
""")
print(json.dumps(result.to_dict(), indent=2))

print("\nAll tutorials:")
result = executor.execute("""
{
    tutorialList {
        id
        title
        author {
            id
            name
        }
    }
}
""")
print(json.dumps(result.to_dict(), indent=2))

print("\nA request with a typo fails validation:")
result = executor.execute("{ tutorialList { id titel } }")
print(json.dumps(result.to_dict(), indent=2))
