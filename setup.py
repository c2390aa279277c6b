"""
sunbird-bulk - Bulk provisioning for Sunbird learning platforms

Installation:
    pip install -e .

This installs the 'sunbird-bulk' command plus one command per phase
('sunbird-profiles', 'sunbird-enroll', 'sunbird-quizzes').
"""

from setuptools import setup, find_packages
import os

# Read README for long description
long_description = ''
if os.path.exists('README.md'):
    with open('README.md', 'r', encoding='utf-8') as f:
        long_description = f.read()

setup(
    name='sunbird-bulk',
    version='1.0.0',
    description='Bulk creation of learner profiles, enrollments and quizzes on Sunbird',
    long_description=long_description,
    long_description_content_type='text/markdown',
    author='Dale Chapman',
    author_email='',
    license='MIT',

    # sunbird_bulk/ and its tests
    packages=find_packages(exclude=['docs', 'data', 'reports']),

    include_package_data=True,

    python_requires='>=3.9',

    install_requires=[
        'click>=8.0',
        'PyYAML>=6.0',
        'requests>=2.28',
        'python-dotenv>=1.0',
    ],

    extras_require={
        'dev': [
            'pytest>=7.4',
            'pytest-cov>=4.1',
            'pytest-mock>=3.11',
        ],
    },

    entry_points={
        'console_scripts': [
            'sunbird-bulk=sunbird_bulk.cli:cli',
            'sunbird-profiles=sunbird_bulk.learner_profiles:main',
            'sunbird-enroll=sunbird_bulk.enrollments:main',
            'sunbird-quizzes=sunbird_bulk.quizzes:main',
        ],
    },

    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: Education',
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
        'Topic :: Education',
    ],

    keywords='sunbird lms education bulk enrollment quiz csv',
)
