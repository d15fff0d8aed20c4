"""Shader variable declarations and their packed constant-buffer layout."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import IntEnum
from typing import Any

import numpy as np

_BLOCK_SIZE = 16


class VariableType(IntEnum):
    FLOAT = 0
    MATRIX44 = 1
    VECTOR2 = 2
    VECTOR3 = 3
    VECTOR4 = 4
    UBYTE4 = 5


_TYPE_SIZES = {
    VariableType.UBYTE4: 4,
    VariableType.FLOAT: 4,
    VariableType.VECTOR2: 8,
    VariableType.VECTOR3: 12,
    VariableType.VECTOR4: 16,
    VariableType.MATRIX44: 64,
}


def type_size(variable_type: VariableType) -> int:
    """Size in bytes of one value of the given type."""
    return _TYPE_SIZES[VariableType(variable_type)]


def round_up_to_nearest(value: int, factor: int) -> int:
    """Round ``value`` up to a multiple of ``factor``."""
    if factor <= 0:
        raise ValueError(f"factor must be positive, got {factor}")
    if factor == 1:
        return value
    offset = int(math.fmod(value, factor))
    if offset == 0:
        return value
    return value + factor - offset


@dataclass
class ShaderVariable:
    name: str
    type: VariableType
    byte_offset: int = 0
    count: int = 1


@dataclass
class ShaderParameter:
    name: str
    type: VariableType
    byte_offset: int
    semantic_name: str
    semantic_index: int


@dataclass
class TextureSampler:
    name: str
    texture: Any = None


def _to_bytes(value: Any, variable_type: VariableType) -> bytes:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    dtype = "u1" if variable_type == VariableType.UBYTE4 else "<f4"
    return np.asarray(value, dtype=dtype).ravel().tobytes()


def _layout(variables: list[ShaderVariable]) -> bytearray:
    size = 0
    for variable in variables:
        block_pos = size % _BLOCK_SIZE
        item_size = type_size(variable.type)
        if variable.count == 1:
            if block_pos + item_size > _BLOCK_SIZE:
                size = round_up_to_nearest(size, _BLOCK_SIZE)
            variable.byte_offset = size
            size += item_size
        else:
            size = round_up_to_nearest(size, _BLOCK_SIZE)
            variable.byte_offset = size
            size += round_up_to_nearest(item_size, _BLOCK_SIZE) * (variable.count - 1) + item_size
    return bytearray(round_up_to_nearest(size, _BLOCK_SIZE))


class ShaderInterface:
    """Declares a shader's inputs and holds the packed values of its variables."""

    def __init__(self) -> None:
        self.vertex_shader_source = b""
        self.pixel_shader_source = b""
        self.parameters: list[ShaderParameter] = []
        self.vertex_shader_variables: list[ShaderVariable] = []
        self.pixel_shader_variables: list[ShaderVariable] = []
        self.texture_samplers: list[TextureSampler] = []
        self.vertex_shader_variable_data: bytearray | None = None
        self.pixel_shader_variable_data: bytearray | None = None
        self.vertex_size = 0

    @property
    def vertex_shader_variable_data_size(self) -> int:
        data = self.vertex_shader_variable_data
        return 0 if data is None else len(data)

    @property
    def pixel_shader_variable_data_size(self) -> int:
        data = self.pixel_shader_variable_data
        return 0 if data is None else len(data)

    def set_vertex_shader_source(self, source: bytes | str) -> None:
        self.vertex_shader_source = source.encode() if isinstance(source, str) else bytes(source)

    def set_pixel_shader_source(self, source: bytes | str) -> None:
        self.pixel_shader_source = source.encode() if isinstance(source, str) else bytes(source)

    def add_vertex_parameter(
        self,
        name: str,
        variable_type: VariableType,
        byte_offset: int,
        semantic_name: str,
        semantic_index: int,
    ) -> None:
        self.parameters.append(
            ShaderParameter(name, VariableType(variable_type), byte_offset, semantic_name, semantic_index)
        )

    def add_vertex_shader_variable(self, name: str, variable_type: VariableType, count: int = 1) -> int:
        return self._add_variable(self.vertex_shader_variables, name, variable_type, count)

    def set_vertex_shader_variable(self, index: int, value: Any, count: int | None = None) -> None:
        self._set_variable(self.vertex_shader_variables, self.vertex_shader_variable_data, index, value, count)

    def add_pixel_shader_variable(self, name: str, variable_type: VariableType, count: int = 1) -> int:
        return self._add_variable(self.pixel_shader_variables, name, variable_type, count)

    def set_pixel_shader_variable(self, index: int, value: Any) -> None:
        self._set_variable(self.pixel_shader_variables, self.pixel_shader_variable_data, index, value, None)

    def add_texture_sampler(self, name: str) -> int:
        self.texture_samplers.append(TextureSampler(name))
        return len(self.texture_samplers) - 1

    def set_texture_sampler(self, index: int, texture: Any) -> None:
        self.texture_samplers[index].texture = texture

    def allocate_variable_data(self) -> None:
        """Lay out all variables and allocate zeroed storage for them."""
        self.vertex_shader_variable_data = _layout(self.vertex_shader_variables)
        self.pixel_shader_variable_data = _layout(self.pixel_shader_variables)

    @staticmethod
    def _add_variable(
        variables: list[ShaderVariable], name: str, variable_type: VariableType, count: int
    ) -> int:
        if count < 1:
            raise ValueError(f"variable count must be at least 1, got {count}")
        variables.append(ShaderVariable(name, VariableType(variable_type), 0, count))
        return len(variables) - 1

    @staticmethod
    def _set_variable(
        variables: list[ShaderVariable],
        data: bytearray | None,
        index: int,
        value: Any,
        count: int | None,
    ) -> None:
        if data is None:
            raise RuntimeError("variable data has not been allocated")
        variable = variables[index]
        if count is None or count == -1:
            count = variable.count
        if not 1 <= count <= variable.count:
            raise ValueError(f"count {count} out of range for variable {variable.name!r}")
        raw = _to_bytes(value, variable.type)
        item_size = type_size(variable.type)
        block_size = round_up_to_nearest(item_size, _BLOCK_SIZE)
        needed = item_size * count
        if len(raw) < needed:
            raise ValueError(f"value for {variable.name!r} needs {needed} bytes, got {len(raw)}")
        offset = variable.byte_offset
        if count == 1 or item_size == block_size:
            data[offset:offset + needed] = raw[:needed]
        else:
            for element in range(count):
                start = offset + block_size * element
                data[start:start + item_size] = raw[item_size * element:item_size * (element + 1)]