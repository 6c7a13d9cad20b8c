#!/usr/bin/env python3
# -*- encoding: utf-8 -*-

# Copyright (C) 2022 Luis López <luis@cuarentaydos.com>
#
# This program is free software; you can redistribute it and/or
# modify it under the terms of the GNU General Public License
# as published by the Free Software Foundation; either version 2
# of the License, or (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program; if not, write to the Free Software
# Foundation, Inc., 51 Franklin Street, Fifth Floor, Boston, MA  02110-1301,
# USA.


from setuptools import setup


setup(
    name="chunkscribe",
    version="1.0.0",
    author="Luis López",
    author_email="luis@cuarentaydos.com",
    packages=["chunkscribe", "chunkscribe.backends", "chunkscribe.lib"],
    scripts=[],
    license="GPL-2.0-or-later",
    description="Transcribe long recordings by splitting them at silences",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    python_requires=">=3.10",
    install_requires=[
        "click",
        "colorama",
        "ffmpeg-python",
        "openai>=1.0",
        "pysrt",
        "python-magic",
    ],
    entry_points={
        "console_scripts": [
            "chunkscribe=chunkscribe.cli:main",
        ]
    },
)
