"""
Course Schedule

PURPOSE:
Describe the default course: which days lessons run on and which topic each
lesson covers. scripts/seed_lessons.py turns this into lesson rows and plan items.

HOW IT WORKS:
1. Every Monday and Tuesday between the start and end date is a lesson day
2. Topics are assigned round-robin from TOPICS
3. Lesson 2 starts out skipped
"""

from datetime import date, timedelta
from typing import List

COURSE_START = date(2025, 7, 1)
COURSE_END = date(2025, 8, 31)
LESSON_WEEKDAYS = (0, 1)  # Monday, Tuesday
SKIPPED_LESSON_NUMBERS = {2}


TOPICS = [
    {
        "name": "Introduction to Mobile App Development",
        "description": "Understanding the fundamentals of mobile app development",
        "icon": "fas fa-mobile-alt",
        "color": "from-blue-500 to-purple-600",
        "button_color": "text-blue-600 hover:text-blue-700",
        "plan": [
            ("Mobile development landscape overview", True),
            ("iOS vs Android development", True),
            ("Development tools and environments", True),
            ("App store guidelines", False),
        ],
    },
    {
        "name": "UI/UX Design Principles",
        "description": "Learning effective user interface and experience design",
        "icon": "fas fa-paint-brush",
        "color": "from-purple-500 to-pink-600",
        "button_color": "text-purple-600 hover:text-purple-700",
        "plan": [
            ("Design thinking process", True),
            ("User research methods", True),
            ("Wireframing and prototyping", True),
            ("Accessibility considerations", False),
        ],
    },
    {
        "name": "Swift Programming Fundamentals",
        "description": "Master the basics of Swift programming language",
        "icon": "fas fa-code",
        "color": "from-orange-500 to-red-600",
        "button_color": "text-orange-600 hover:text-orange-700",
        "plan": [
            ("Variables and data types", True),
            ("Control flow and functions", True),
            ("Object-oriented programming", True),
            ("Error handling and optionals", False),
        ],
    },
    {
        "name": "SwiftUI Basics",
        "description": "Building user interfaces with SwiftUI framework",
        "icon": "fas fa-layer-group",
        "color": "from-green-500 to-teal-600",
        "button_color": "text-green-600 hover:text-green-700",
        "plan": [
            ("Views and modifiers", True),
            ("State management", True),
            ("Navigation and presentation", True),
            ("Custom view components", False),
        ],
    },
    {
        "name": "Data Management",
        "description": "Working with data in mobile applications",
        "icon": "fas fa-database",
        "color": "from-indigo-500 to-blue-600",
        "button_color": "text-indigo-600 hover:text-indigo-700",
        "plan": [
            ("Core Data fundamentals", True),
            ("Network requests and APIs", True),
            ("Data persistence strategies", True),
            ("Caching and performance", False),
        ],
    },
    {
        "name": "App Architecture Patterns",
        "description": "Understanding different architectural approaches",
        "icon": "fas fa-sitemap",
        "color": "from-cyan-500 to-blue-600",
        "button_color": "text-cyan-600 hover:text-cyan-700",
        "plan": [
            ("MVC vs MVVM patterns", True),
            ("Dependency injection", True),
            ("Clean architecture principles", True),
            ("Testing strategies", False),
        ],
    },
    {
        "name": "Testing and Debugging",
        "description": "Ensuring app quality through testing and debugging",
        "icon": "fas fa-bug",
        "color": "from-yellow-500 to-orange-600",
        "button_color": "text-yellow-600 hover:text-yellow-700",
        "plan": [
            ("Unit testing fundamentals", True),
            ("UI testing with XCTest", True),
            ("Debugging tools and techniques", True),
            ("Performance profiling", False),
        ],
    },
    {
        "name": "App Store Deployment",
        "description": "Publishing your app to the App Store",
        "icon": "fas fa-rocket",
        "color": "from-emerald-500 to-green-600",
        "button_color": "text-emerald-600 hover:text-emerald-700",
        "plan": [
            ("App Store Connect setup", True),
            ("App review guidelines", True),
            ("Metadata and screenshots", True),
            ("App analytics and updates", False),
        ],
    },
]


def lesson_dates(start: date = COURSE_START, end: date = COURSE_END) -> List[date]:
    """All lesson days in [start, end], in order."""
    dates = []
    current = start
    while current <= end:
        if current.weekday() in LESSON_WEEKDAYS:
            dates.append(current)
        current += timedelta(days=1)
    return dates


def build_schedule(start: date = COURSE_START, end: date = COURSE_END) -> List[dict]:
    """
    Lessons for the course, each with its plan items.

    Returns:
        List of dicts with lesson columns plus a "plan" list of
        {"title", "is_required", "sort_order"}.
    """
    schedule = []
    for index, day in enumerate(lesson_dates(start, end)):
        topic = TOPICS[index % len(TOPICS)]
        number = index + 1
        schedule.append({
            "lesson_number": number,
            "name": f"Lesson {number}: {topic['name']}",
            "description": topic["description"],
            "scheduled_date": day.isoformat(),
            "status": "skipped" if number in SKIPPED_LESSON_NUMBERS else "normal",
            "topic_name": topic["name"],
            "icon": topic["icon"],
            "color": topic["color"],
            "button_color": topic["button_color"],
            "plan": [
                {"title": title, "is_required": required, "sort_order": order}
                for order, (title, required) in enumerate(topic["plan"])
            ],
        })
    return schedule
