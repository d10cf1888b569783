"""
Provides project-level commands. Commands are run via `python setup.py <command> [args]`

Commands available:

- apidoc: regenerate reST docs for inline pydoc comments
"""

from setuptools import setup, Command

import os


class RunInRootCommand(Command):
    user_options = []

    def initialize_options(self):
        self.cwd = None

    def finalize_options(self):
        self.cwd = os.getcwd()

    def run(self):
        assert os.getcwd() == self.cwd, 'Must be in package root: %s' % self.cwd
        self.runcmd()

    def runcmd(self):
        pass


class ApiDocCommand(RunInRootCommand):
    description = "regenerates the API docs"

    def runcmd(self):
        os.system('"sphinx-apidoc" -f -e -o docs/apidoc src/peerlink')


setup(
    name='peerlink-connector-py',
    version='0.1.0',
    description='Line-oriented connections to serial, Bluetooth and TCP peripherals.',
    url='',
    author='',
    author_email='',
    license='LGPL',
    package_dir={'': 'src'},
    packages=['peerlink', 'peerlink.conduit', 'peerlink.config', 'peerlink.connector',
              'peerlink.protocol', 'peerlink.support'],
    package_data={'peerlink': ['*.cfg'], 'peerlink.config': ['*.cfg']},
    python_requires='>=3.6',
    install_requires=[
        'pyserial>=3.0',
        'zeroconf>=0.28',
        'configobj>=5.0',
    ],
    extras_require={
        'test': ['pytest', 'PyHamcrest>=2.0'],
    },
    entry_points={
        'console_scripts': ['peerlink-terminal = peerlink.terminal:main'],
    },
    zip_safe=False,
    cmdclass={
        'apidoc': ApiDocCommand,
    }
)
