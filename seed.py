"""
Starter catalogue: topics, lessons, questions and badges.

Usage: python seed.py
Does nothing when the database already has topics.
"""
import logging

from database import SessionLocal, init_database
from storage import DatabaseStorage

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

TOPICS = [
    {"name": "Algorithms", "description": "Sorting, searching, and optimization algorithms"},
    {"name": "Data Structures", "description": "Arrays, trees, graphs, and hash tables"},
    {"name": "System Design", "description": "Scalability, databases, and distributed systems"},
    {"name": "JavaScript", "description": "ES6+, async/await, and modern JavaScript concepts"},
    {"name": "Python", "description": "Python fundamentals and advanced concepts"},
]

LESSONS = [
    {
        "topic": "Algorithms",
        "difficulty": "beginner",
        "title": "Introduction to Recursion",
        "body": (
            "Recursion is a technique where a function calls itself to solve smaller subproblems.\n\n"
            "Every recursive function needs:\n"
            "1. A base case that stops the recursion\n"
            "2. A recursive case that calls the function with a smaller input\n\n"
            "Tree traversal and divide-and-conquer algorithms are natural fits."
        ),
        "code_snippet": (
            "def factorial(n):\n"
            "    if n <= 1:\n"
            "        return 1\n"
            "    return n * factorial(n - 1)\n"
        ),
        "explanation": "Always write the base case first; without it the call stack overflows.",
        "tags": ["recursion", "algorithms", "fundamentals"],
    },
    {
        "topic": "Data Structures",
        "difficulty": "intermediate",
        "title": "Binary Search Trees",
        "body": (
            "A binary search tree keeps smaller values in the left subtree and larger values "
            "in the right subtree. Search, insert and delete take O(log n) on average."
        ),
        "code_snippet": (
            "class Node:\n"
            "    def __init__(self, value):\n"
            "        self.value = value\n"
            "        self.left = None\n"
            "        self.right = None\n"
        ),
        "explanation": "An in-order traversal of a BST yields the values in sorted order.",
        "tags": ["trees", "data-structures", "searching"],
    },
    {
        "topic": "Python",
        "difficulty": "beginner",
        "title": "List Comprehensions",
        "body": "A list comprehension builds a list from an iterable in a single expression.",
        "code_snippet": "squares = [n * n for n in range(10) if n % 2 == 0]\n",
        "explanation": "Prefer a plain loop once the comprehension needs more than one condition.",
        "tags": ["python", "lists"],
    },
]

QUESTIONS = [
    {
        "topic": "Algorithms",
        "difficulty": "beginner",
        "title": "What is the time complexity of binary search?",
        "body": "Binary search finds an item in a sorted list. What is its time complexity?",
        "options": ["O(n)", "O(log n)", "O(n²)", "O(1)"],
        "correct_answer": "B",
        "explanation": "Each step discards half of the remaining elements, so it runs in O(log n).",
        "tags": ["binary-search", "complexity"],
    },
    {
        "topic": "Data Structures",
        "difficulty": "intermediate",
        "title": "Which data structure uses the LIFO principle?",
        "body": "LIFO stands for Last In, First Out. Which data structure follows it?",
        "options": ["Queue", "Stack", "Array", "Linked List"],
        "correct_answer": "B",
        "explanation": "A stack removes the most recently added element first.",
        "tags": ["stack", "data-structures"],
    },
    {
        "topic": "Algorithms",
        "difficulty": "intermediate",
        "title": "Worst case of quicksort",
        "body": "What is the worst-case time complexity of quicksort?",
        "options": ["O(n log n)", "O(n)", "O(n²)", "O(log n)"],
        "correct_answer": "C",
        "explanation": "Consistently bad pivots split the input into sizes n-1 and 0.",
        "tags": ["sorting", "complexity"],
    },
    {
        "topic": "Data Structures",
        "difficulty": "beginner",
        "title": "Average hash table lookup",
        "body": "What is the average time complexity of a lookup in a hash table?",
        "options": ["O(1)", "O(log n)", "O(n)", "O(n log n)"],
        "correct_answer": "A",
        "explanation": "With a good hash function, lookups touch a constant number of buckets.",
        "tags": ["hashing", "data-structures"],
    },
    {
        "topic": "System Design",
        "difficulty": "intermediate",
        "title": "Horizontal scaling",
        "body": "What does horizontal scaling mean?",
        "options": [
            "Adding more CPU to one server",
            "Adding more servers",
            "Adding more disk to one server",
            "Rewriting the service in a faster language",
        ],
        "correct_answer": "B",
        "explanation": "Horizontal scaling adds machines; vertical scaling makes one machine bigger.",
        "tags": ["scalability"],
    },
    {
        "topic": "System Design",
        "difficulty": "advanced",
        "title": "CAP theorem",
        "body": "During a network partition, a distributed store must choose between which two properties?",
        "options": [
            "Consistency and availability",
            "Latency and throughput",
            "Durability and isolation",
            "Security and performance",
        ],
        "correct_answer": "A",
        "explanation": "Under a partition a system can stay consistent or stay available, not both.",
        "tags": ["distributed-systems"],
    },
    {
        "topic": "JavaScript",
        "difficulty": "beginner",
        "title": "typeof null",
        "body": "What does typeof null return in JavaScript?",
        "options": ["'null'", "'undefined'", "'object'", "'number'"],
        "correct_answer": "C",
        "explanation": "It is a long-standing quirk kept for backwards compatibility.",
        "tags": ["javascript", "types"],
    },
    {
        "topic": "JavaScript",
        "difficulty": "intermediate",
        "title": "Awaiting a promise",
        "body": "Which keyword pauses an async function until a promise settles?",
        "options": ["yield", "await", "defer", "then"],
        "correct_answer": "B",
        "explanation": "await suspends the async function and resumes it with the settled value.",
        "tags": ["javascript", "async"],
    },
    {
        "topic": "Python",
        "difficulty": "beginner",
        "title": "Mutable default arguments",
        "body": "How many times is a default argument value evaluated in Python?",
        "options": ["On every call", "Once, when the function is defined", "Never", "Once per module import of the caller"],
        "correct_answer": "B",
        "explanation": "Defaults are evaluated at definition time, so a mutable default is shared between calls.",
        "tags": ["python", "functions"],
    },
    {
        "topic": "Python",
        "difficulty": "intermediate",
        "title": "Generators",
        "body": "What does a function containing yield return when called?",
        "options": ["A list", "None", "A generator object", "A tuple"],
        "correct_answer": "C",
        "explanation": "Calling it builds a generator; the body runs lazily as values are requested.",
        "tags": ["python", "generators"],
    },
]

BADGES = [
    {"name": "First Steps", "description": "Complete your first quiz", "criteria": "complete_quiz:1", "icon": "🎯"},
    {"name": "Week Warrior", "description": "Keep a 7-day streak", "criteria": "streak:7", "icon": "🔥"},
    {"name": "Perfectionist", "description": "Score 6 out of 6", "criteria": "perfect_score:1", "icon": "💯"},
    {"name": "Scholar", "description": "Earn 1000 points", "criteria": "points:1000", "icon": "📚"},
]


def seed_data(storage: DatabaseStorage) -> bool:
    """Insert the starter catalogue; returns False when the database was not empty"""
    if storage.get_topics():
        logger.info("Topics already present, skipping seed")
        return False

    topic_ids = {}
    for topic in TOPICS:
        created = storage.create_topic(topic["name"], topic["description"])
        topic_ids[created.name] = created.id
        logger.info(f"Created topic: {created.name}")

    for content_type, items in (("lesson", LESSONS), ("question", QUESTIONS)):
        for item in items:
            fields = {key: value for key, value in item.items() if key != "topic"}
            storage.create_content_item(type=content_type, topic_id=topic_ids[item["topic"]], reviewed=True, **fields)
            logger.info(f"Created {content_type}: {item['title']}")

    for badge in BADGES:
        storage.create_badge(**badge)
        logger.info(f"Created badge: {badge['name']}")

    storage.commit()
    return True


def main():
    init_database()
    db = SessionLocal()
    try:
        seeded = seed_data(DatabaseStorage(db))
    finally:
        db.close()
    logger.info("Seeding complete" if seeded else "Nothing to seed")


if __name__ == "__main__":
    main()
