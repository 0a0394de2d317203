# Copyright 2025 Roger Cibrian
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

"""Configuration loading for rhiexec.

Built-in defaults, an optional YAML config file and RHIEXEC_* environment
variables are merged (last wins) into one dict. Relative paths are resolved
against the config file location.

Public API:

- load_effective_config: Load and merge the engine configuration

Example:
    Basic usage:

        from pathlib import Path
        from rhiexec.config import load_effective_config

        config = load_effective_config(Path("rhiexec.yaml"))
        print(config["install_roots"]["roaming_profile"])

"""

from .loader import load_effective_config

__all__ = ["load_effective_config"]
