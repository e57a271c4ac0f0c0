"""
Setup script for quadmath package.
"""

from setuptools import setup, find_packages

setup(
    name="quadmath",
    version="0.1.0",
    packages=find_packages(include=["quadmath", "quadmath.*"]),
    install_requires=[
        # Core numerical dependencies
        "numpy>=1.20.0",
        "pandas>=1.3.0",
        "scipy>=1.7.0",
        
        # Database
        "sqlalchemy>=2.0.0",
        "psycopg2-binary>=2.9.0",
        
        # Web server
        "fastapi>=0.100.0",
        "uvicorn>=0.15.0",
        "pydantic>=2.0.0",
        
        # Utilities
        "pyyaml>=6.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=6.0.0",
            "httpx>=0.24.0",
        ],
    },
    entry_points={
        'console_scripts': [
            'quadmath=quadmath.__main__:main',
        ],
    },
    author="Quadmath Team",
    description="Superlatives, correlations and quadrant layout for slider quizzes",
    keywords="quiz, survey, correlation, visualization",
    python_requires=">=3.8",
)
