# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.


"""
Lookup of artifact generators by name.
"""
from typing import Dict
from .base import ArtifactGenerator
from .to_constants import ConstantsGenerator
from .to_profiles import ConnectionProfilesGenerator
from .to_taskfile import TaskfileGenerator

GENERATORS: Dict[str, ArtifactGenerator] = {
    g.name: g for g in (TaskfileGenerator(), ConstantsGenerator(), ConnectionProfilesGenerator())
}


def get_generator(name: str) -> ArtifactGenerator:
    """
    Returns the generator registered under ``name``.

    :raises KeyError: If no generator has that name.
    """
    return GENERATORS[name]
