from setuptools import find_packages, setup

setup(
    name="powerludo",
    version='0.1.0',
    description="Rules engine and PettingZoo environment for Ludo with board power-ups",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.9",
    install_requires=[
        "pettingzoo>=1.24.0",
        "gymnasium>=1.0.0",
        "numpy>=1.21.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "jinja2>=3.0.0",
            "typeguard>=3.0.0",
        ],
    },
    entry_points={
        "console_scripts": ["powerludo-demo=powerludo.demo:main"],
    },
)
