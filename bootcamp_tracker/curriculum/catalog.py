"""
Course Catalog

The full-stack web development bootcamp: 46 modules in 5 categories.
Categories partition the modules by contiguous id ranges. Loaded once at
import time and never mutated.
"""

from typing import Dict, List, Optional, Tuple

from bootcamp_tracker.models.curriculum import Module, Category

FRONT_END = "Front-End Fundamentals"
JAVASCRIPT_DOM = "JavaScript & DOM"
BACKEND = "Backend Development"
DATABASES = "Databases & Full Stack"
ADVANCED = "Advanced Topics"

_MODULE_ROWS: List[Tuple[int, str, str, str]] = [
    (1, "Front-End Web Development", FRONT_END,
     "Introduction to front-end web development concepts"),
    (2, "Introduction to HTML", FRONT_END,
     "Learning HTML basics and document structure"),
    (3, "Intermediate HTML", FRONT_END,
     "Advanced HTML elements and semantic markup"),
    (4, "Multi-Page Websites", FRONT_END,
     "Creating and linking multiple HTML pages"),
    (5, "Introduction to CSS", FRONT_END,
     "Basics of styling web pages with CSS"),
    (6, "CSS Properties", FRONT_END,
     "Working with various CSS properties and values"),
    (7, "Intermediate CSS", FRONT_END,
     "Advanced CSS techniques and selectors"),
    (8, "Advanced CSS", FRONT_END,
     "Complex CSS layouts and animations"),
    (9, "Flexbox", FRONT_END,
     "Creating flexible layouts with CSS Flexbox"),
    (10, "Grid", FRONT_END,
     "Building grid-based layouts with CSS Grid"),
    (11, "Bootstrap", FRONT_END,
     "Using the Bootstrap framework for responsive design"),
    (12, "Web Design School - Create a Website that People Love", FRONT_END,
     "Principles of effective web design and user experience"),
    (13, "Capstone Project 2 - Personal Site", FRONT_END,
     "Building a complete personal website project"),
    (14, "Introduction to Javascript ES6", JAVASCRIPT_DOM,
     "Learning JavaScript fundamentals and ES6 features"),
    (15, "Intermediate Javascript", JAVASCRIPT_DOM,
     "Advanced JavaScript concepts and programming techniques"),
    (16, "The Document Object Model (DOM)", JAVASCRIPT_DOM,
     "Manipulating HTML documents with JavaScript"),
    (17, "Boss Level Challenge 1 - The Dicee Game", JAVASCRIPT_DOM,
     "Creating an interactive dice game with JavaScript"),
    (18, "Advanced Javascript and DOM Manipulation", JAVASCRIPT_DOM,
     "Complex DOM manipulation and event handling"),
    (19, "jQuery", JAVASCRIPT_DOM,
     "Using jQuery to simplify JavaScript development"),
    (20, "Boss Level Challenge 2 - The Simon Game", JAVASCRIPT_DOM,
     "Building a memory game with advanced JavaScript"),
    (21, "The Unix Command Line", BACKEND,
     "Learning essential command line skills for developers"),
    (22, "Backend Web Development", BACKEND,
     "Introduction to server-side programming"),
    (23, "Node.js", BACKEND,
     "Building server-side applications with Node.js"),
    (24, "Express.js with Node.js", BACKEND,
     "Creating web applications with the Express framework"),
    (25, "APIs - Application Programming Interfaces", BACKEND,
     "Working with and creating RESTful APIs"),
    (26, "Git, Github and Version Control", BACKEND,
     "Managing code with version control systems"),
    (27, "EJS", BACKEND,
     "Using Embedded JavaScript templates for dynamic content"),
    (28, "Boss Level Challenge 3 - Blog Website", BACKEND,
     "Creating a full-featured blog with Node.js"),
    (29, "Databases", DATABASES,
     "Introduction to database concepts and systems"),
    (30, "SQL", DATABASES,
     "Working with relational databases and SQL"),
    (31, "MongoDB", DATABASES,
     "Using MongoDB NoSQL database"),
    (32, "Mongoose", DATABASES,
     "MongoDB object modeling for Node.js"),
    (33, "Putting Everything Together", DATABASES,
     "Combining front-end and back-end technologies"),
    (34, "Deploying Your Web Application", DATABASES,
     "Publishing web applications to production environments"),
    (35, "Boss Level Challenge 4 - Blog Website Upgrade", DATABASES,
     "Enhancing a blog with database functionality"),
    (36, "Build Your Own RESTful API From Scratch", DATABASES,
     "Creating a complete API with Node.js and databases"),
    (37, "Authentication & Security", DATABASES,
     "Implementing user authentication and security measures"),
    (38, "React.js", ADVANCED,
     "Building user interfaces with React"),
    (39, "Web3 Decentralised App (DApp) Development with the Internet Computer", ADVANCED,
     "Creating blockchain-based decentralized applications"),
    (40, "Build Your First DeFi (Decentralised Finance) DApp - DBANK", ADVANCED,
     "Developing a decentralized finance application"),
    (41, "Deploying to the ICP Live Blockchain", ADVANCED,
     "Publishing applications to the Internet Computer blockchain"),
    (42, "Building DApps on ICP with a React Frontend", ADVANCED,
     "Combining React with blockchain backends"),
    (43, "Create Your Own Crypto Token", ADVANCED,
     "Developing and deploying a cryptocurrency token"),
    (44, "Minting NFTs and Building an NFT Marketplace like OpenSea", ADVANCED,
     "Creating and trading non-fungible tokens"),
    (45, "Optional Module Ask Angela Anything", ADVANCED,
     "Q&A session covering various web development topics"),
    (46, "Next Steps", ADVANCED,
     "Guidance for continuing your web development journey"),
]

COURSE_MODULES: Tuple[Module, ...] = tuple(
    Module(id=module_id, title=title, category=category, description=description)
    for module_id, title, category, description in _MODULE_ROWS
)

CATEGORIES: Tuple[Category, ...] = (
    Category(name=FRONT_END, display_color="#4299e1", modules="1-13"),
    Category(name=JAVASCRIPT_DOM, display_color="#f6ad55", modules="14-20"),
    Category(name=BACKEND, display_color="#68d391", modules="21-28"),
    Category(name=DATABASES, display_color="#fc8181", modules="29-37"),
    Category(name=ADVANCED, display_color="#b794f4", modules="38-46"),
)

# Achievement id stems are their own vocabulary: keep in sync with CATEGORIES by hand
CATEGORY_ACHIEVEMENT_STEMS: Dict[str, str] = {
    FRONT_END: "html_css",
    JAVASCRIPT_DOM: "js_dom",
    BACKEND: "backend",
    DATABASES: "database",
    ADVANCED: "advanced",
}

TOTAL_MODULES: int = len(COURSE_MODULES)

_MODULES_BY_ID: Dict[int, Module] = {module.id: module for module in COURSE_MODULES}
_CATEGORIES_BY_NAME: Dict[str, Category] = {category.name: category for category in CATEGORIES}


def get_module(module_id: int) -> Optional[Module]:
    """Look up a module by id (None for ids outside the catalog)"""
    return _MODULES_BY_ID.get(module_id)


def get_category(name: str) -> Optional[Category]:
    return _CATEGORIES_BY_NAME.get(name)


def modules_in_category(
    category_name: str,
    modules: Tuple[Module, ...] = COURSE_MODULES
) -> List[Module]:
    """Modules of one category, in sequence order"""
    return [module for module in modules if module.category == category_name]
