#!/usr/bin/env python3
from __future__ import annotations

import os
import setuptools
import pathlib
import sys
import toml

__minver__ = '3.8'
__author__ = 'streamsplit contributors'
__slogan__ = 'Split unbounded binary streams at a delimiter, chunk by chunk.'
__topics__ = [
    'Development Status :: 3 - Alpha',
    'Operating System :: OS Independent',
    'Programming Language :: Python :: 3 :: Only',
    'Topic :: System :: Filesystems',
    'Topic :: Text Processing :: Filters',
    'Topic :: Utilities',
]


class DeployCommand(setuptools.Command):
    description = 'Tag and push new release.'
    user_options = []

    def initialize_options(self):
        pass

    def finalize_options(self):
        pass

    @staticmethod
    def main():
        import subprocess
        import shlex
        import streamsplit

        from pathlib import Path

        DEVNULL = open(os.devnull, 'wb')

        def run(cmd):
            print(F'run: {cmd}')
            return subprocess.check_call(
                shlex.split(cmd),
                stdout=DEVNULL,
                stderr=DEVNULL,
                cwd=os.getcwd(),
            )

        root = Path(streamsplit.__file__).parent.parent
        os.chdir(root)

        try:
            run(F'git tag {streamsplit.__version__}')
            run(R'git push')
            run(R'git push --tags')
        except subprocess.CalledProcessError as E:
            print(F'error: {E!s}')
            return 1
        else:
            return 0

    def run(self):
        sys.exit(self.main())


def get_config():
    here = pathlib.Path(__file__).parent.absolute()
    sys.path.insert(0, str(here))

    import streamsplit

    def get_setup_readme(filename: str | pathlib.Path | None = None):
        if filename is None:
            filename = here.joinpath('README.md')
        with open(filename, 'r', encoding='UTF8') as README:
            return README.read()

    ppcfg: dict[str, dict[str, list[str]]] = toml.load(str(here.joinpath('pyproject.toml')))
    requirements = [
        r for r in ppcfg['build-system']['requires'] if not r.startswith(('setuptools', 'wheel'))]

    config = dict(
        name=streamsplit.__distribution__,
        version=streamsplit.__version__,
        long_description=get_setup_readme(),
        author=__author__,
        description=__slogan__,
        long_description_content_type='text/markdown',
        python_requires=F'>={__minver__}',
        classifiers=__topics__,
        packages=setuptools.find_namespace_packages(include=('streamsplit', 'streamsplit.*')),
        install_requires=requirements,
        extras_require={'test': ['flake8']},
        entry_points={'console_scripts': ['ssplit=streamsplit.cli:main']},
        cmdclass={'deploy': DeployCommand},
    )

    return config


if __name__ == '__main__':
    setuptools.setup(**get_config())
