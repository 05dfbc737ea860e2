""" Installation script for the tablesmith package.
"""

from setuptools import setup, find_packages
import re
import io

__version__ = re.search(
    r'__version__\s*=\s*[\'"]([^\'"]*)[\'"]',
    io.open('tablesmith/core/__init__.py', encoding='utf_8_sig').read()
    ).group(1)


setup(
    name='tablesmith',
    description='Async table resolution and relationship-schema enrichment over document stores and '
                'external datasources.',
    long_description='Resolves internal and external tables behind one table abstraction and enriches '
                     'their relationship and view schemas.',
    long_description_content_type='text/markdown',
    version=__version__,
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={
        'tablesmith.core': ['schemas/*.schema.json']
    },
    python_requires='>=3.9, <4',
    entry_points={
        'console_scripts': [
            'tablesmith-cli = tablesmith.core.tables_cli:main'
        ]
    },
    install_requires=[
        'httpx>=0.23',
        'portalocker>=1.2.1',
        'jsonschema>=3.1'
    ],
    extras_require={
        'test': [
            'pytest'
        ]
    },
    license='Apache 2.0',
    classifiers=[
        'Intended Audience :: Developers',
        'License :: OSI Approved :: Apache Software License',
        'Operating System :: POSIX',
        'Operating System :: MacOS :: MacOS X',
        'Operating System :: Microsoft :: Windows',
        'Programming Language :: Python',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12'
    ]
)
