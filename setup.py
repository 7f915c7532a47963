#!/usr/bin/env python
# -*- coding: utf-8 -*-
from setuptools import find_packages, setup

with open('README.md', encoding='utf8') as readme_file:
    readme = readme_file.read()


setup(
    name='apm-intake',
    version='0.4.0',
    description="Buffered, background delivery of APM events to an intake collector.",
    long_description=readme,
    long_description_content_type="text/markdown",
    packages=find_packages(include=['apm_intake', 'apm_intake.*']),
    include_package_data=True,
    install_requires=[
        'httpx>=0.27',
        'certifi',
        'tenacity>=8.2',
    ],
    extras_require={
        'test': [
            'pytest>=7',
        ],
    },
    python_requires=">=3.9",
    license="MIT license",
    zip_safe=False,
    keywords='apm telemetry ndjson',
    classifiers=[
        'Intended Audience :: Developers',
        'License :: OSI Approved :: MIT License',
        'Natural Language :: English',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
    ]
)
