import os.path
from setuptools import setup

from popcore import __version__

here = os.path.abspath(os.path.dirname(__file__))

setup(
    name='popcore',
    version=__version__,
    description='a small POP3 client core: USER/PASS, APOP and XOAUTH2 '
                'login, byte-exact RETR and TOP',
    long_description=open(os.path.join(here, 'README')).read(),
    license='GNU GPL version 2',
    python_requires='>=3.7',
    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: GNU General Public License (GPL)',
        'Natural Language :: English',
        'Operating System :: OS Independent',
        'Programming Language :: Python',
        'Programming Language :: Python :: 3',
        'Topic :: Communications :: Email',
        'Topic :: Communications :: Email :: Post-Office :: POP3',
        'Topic :: Software Development :: Libraries :: Python Modules',
    ],
    packages=[
        'popcore'
    ],
    extras_require={
        'test': ['pytest'],
    },
)
