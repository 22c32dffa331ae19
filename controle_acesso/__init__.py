# SPDX-License-Identifier: MIT
# Copyright (c) 2024-2025 Mateus G Pereira <mateus.pereira@ifsp.edu.br>
"""Sincronização do roster de aprendizes com o sistema de controle de acesso."""

__version__ = "1.0.0"
