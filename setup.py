from setuptools import setup, find_packages

setup(
    name="cgrp_extractor",
    version="0.1.0",
    description="Extract wave archives, banks and sequences from CGRP audio groups",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    packages=find_packages(include=['cgrp_extractor', 'cgrp_extractor.*']),
    install_requires=[
        "tqdm>=4.0.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "cgrp-extract=cgrp_extractor.main:main",
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Operating System :: OS Independent",
        "Topic :: Multimedia :: Sound/Audio",
    ],
    python_requires=">=3.8",
)
