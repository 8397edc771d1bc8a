from setuptools import setup, find_packages

setup(
    name="courtdesk",
    version="0.1.0",
    description="Court reservation and billing desk",
    python_requires=">=3.10",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    package_data={"courtdesk": ["py.typed", "config/logging_config.yaml"]},
    install_requires=[
        'PyYAML>=6.0',
        'tabulate>=0.9.0',
        'typing_extensions>=4.5.0'
    ],
    extras_require={
        'test': [
            'pytest>=7.0'
        ]
    },
    entry_points={
        'console_scripts': [
            'courtdesk=courtdesk.cli:main'
        ]
    }
)
