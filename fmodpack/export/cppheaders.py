# cppheaders.py - C++ 소비자용 헤더 생성
# ExportSnapshot(고정 스냅샷)만 받아서 keys.hpp, export.hpp, extract.hpp, extractAll.hpp를 만든다.

import os
import logging

from fmodpack.gameres.gameres import ExportSnapshot
from fmodpack.gameres.utility import write_atomic


# C++ 문자열 리터럴. 출력 가능한 ASCII 외에는 8진 이스케이프 (\x는 뒤 문자와 이어붙는 문제가 있음)
def cpp_string(s: str) -> str:
    out = []
    for b in s.encode("utf-8", "surrogatepass"):
        c = chr(b)
        if c in ('"', "\\", "?") or b < 0x20 or b > 0x7E:
            out.append(f"\\{b:03o}")
        else:
            out.append(c)
    return '"' + "".join(out) + '"'


def cpp_char16(ch: str) -> str:
    return f"u'\\x{ord(ch):04X}'"


EXTRACT_HPP = r"""#pragma once
// Auto-generated extract.hpp

#include "keys.hpp"
#include <cstddef>
#include <cstdint>
#include <fstream>
#include <stdexcept>
#include <string>
#include <unordered_map>
#include <vector>

namespace fmod_extract {
  inline std::vector<char> readFileRange(const std::string& file, std::size_t offset, std::size_t length) {
    std::ifstream in(file, std::ios::binary);
    if (!in) throw std::runtime_error("Failed to open " + file);
    std::vector<char> buffer(length);
    if (length == 0) return buffer;
    in.seekg(static_cast<std::streamoff>(offset));
    in.read(buffer.data(), static_cast<std::streamsize>(length));
    if (!in) throw std::runtime_error("Failed to read data from " + file);
    return buffer;
  }

  // index -> label -> char16_t
  inline const std::unordered_map<std::uint32_t, char16_t>& charByIndex() {
    static const std::unordered_map<std::uint32_t, char16_t> table = [] {
      std::unordered_map<std::string, char16_t> byLabel;
      for (const auto& kv : fmod_keys::keys) byLabel.emplace(kv.second, kv.first);
      std::unordered_map<std::uint32_t, char16_t> result;
      for (const auto& kv : fmod_keys::bin) {
        auto it = byLabel.find(kv.first);
        if (it != byLabel.end()) result.emplace(kv.second, it->second);
      }
      return result;
    }();
    return table;
  }

  inline std::u16string decodeText(const std::vector<char>& buffer) {
    const std::size_t width = fmod_keys::indexWidth;
    if (buffer.size() % width != 0) throw std::runtime_error("Payload length is not a multiple of the index width");
    const auto& table = charByIndex();
    std::u16string result;
    result.reserve(buffer.size() / width);
    for (std::size_t i = 0; i < buffer.size(); i += width) {
      std::uint32_t index = 0;
      for (std::size_t b = 0; b < width; ++b) {
        index = (index << 8) | static_cast<unsigned char>(buffer[i + b]);
      }
      auto it = table.find(index);
      if (it == table.end()) throw std::runtime_error("Unknown char key for index " + std::to_string(index));
      result.push_back(it->second);
    }
    return result;
  }

  inline std::string toUtf8(const std::u16string& text) {
    std::string out;
    out.reserve(text.size());
    for (std::size_t i = 0; i < text.size(); ++i) {
      std::uint32_t cp = text[i];
      if (cp >= 0xD800 && cp <= 0xDBFF && i + 1 < text.size()) {
        std::uint32_t lo = text[i + 1];
        if (lo >= 0xDC00 && lo <= 0xDFFF) {
          cp = 0x10000 + ((cp - 0xD800) << 10) + (lo - 0xDC00);
          ++i;
        }
      }
      if (cp < 0x80) {
        out.push_back(static_cast<char>(cp));
      } else if (cp < 0x800) {
        out.push_back(static_cast<char>(0xC0 | (cp >> 6)));
        out.push_back(static_cast<char>(0x80 | (cp & 0x3F)));
      } else if (cp < 0x10000) {
        out.push_back(static_cast<char>(0xE0 | (cp >> 12)));
        out.push_back(static_cast<char>(0x80 | ((cp >> 6) & 0x3F)));
        out.push_back(static_cast<char>(0x80 | (cp & 0x3F)));
      } else {
        out.push_back(static_cast<char>(0xF0 | (cp >> 18)));
        out.push_back(static_cast<char>(0x80 | ((cp >> 12) & 0x3F)));
        out.push_back(static_cast<char>(0x80 | ((cp >> 6) & 0x3F)));
        out.push_back(static_cast<char>(0x80 | (cp & 0x3F)));
      }
    }
    return out;
  }
}
"""

EXTRACT_ALL_HPP = r"""#pragma once
// Auto-generated extractAll.hpp

#include "extract.hpp"
#include "export.hpp"
#include <cstddef>
#include <exception>
#include <filesystem>
#include <fstream>
#include <iostream>
#include <string>
#include <vector>

namespace fmod_extract_all {

  // Extract all files from the bundle.fmod archive
  // - fmodFilePath: path to the .fmod archive file
  // - outputDir: directory to write extracted files into
  // - skipBinary: skip files marked as binary
  // Returns the number of files that failed.
  inline std::size_t extractAll(const std::string& fmodFilePath, const std::string& outputDir, bool skipBinary = false) {
    namespace fs = std::filesystem;

    std::size_t extractedCount = 0;
    std::size_t skippedCount = 0;
    std::size_t failedCount = 0;

    for (const auto& fileMeta : fmod_export::files) {
      if (skipBinary && fileMeta.binary) {
        ++skippedCount;
        std::cout << "[skip binary] " << fileMeta.path << std::endl;
        continue;
      }

      try {
        std::vector<char> payload = fmod_extract::readFileRange(fmodFilePath, fileMeta.offset, fileMeta.length);
        std::string data;
        if (fileMeta.binary) {
          data.assign(payload.begin(), payload.end());
        } else {
          data = fmod_extract::toUtf8(fmod_extract::decodeText(payload));
        }

        fs::path outPath = fs::path(outputDir) / fs::path(fileMeta.path);
        fs::create_directories(outPath.parent_path());

        std::ofstream out(outPath, std::ios::binary);
        if (!out) {
          std::cerr << "Failed to open output file: " << outPath << std::endl;
          ++failedCount;
          continue;
        }

        out.write(data.data(), static_cast<std::streamsize>(data.size()));
        if (!out) {
          std::cerr << "Failed to write data to: " << outPath << std::endl;
          ++failedCount;
          continue;
        }

        std::cout << "[extracted] " << fileMeta.path << std::endl;
        ++extractedCount;
      }
      catch (const std::exception& e) {
        std::cerr << "Exception processing " << fileMeta.path << ": " << e.what() << std::endl;
        ++failedCount;
      }
    }

    std::cout << "\nExtraction complete.\n";
    std::cout << "  Files extracted: " << extractedCount << std::endl;
    std::cout << "  Files skipped (binary): " << skippedCount << std::endl;
    std::cout << "  Files failed: " << failedCount << std::endl;
    return failedCount;
  }
}
"""


class CppHeaderExporter:
    HEADER_NAMES = ("keys.hpp", "export.hpp", "extract.hpp", "extractAll.hpp")

    def __init__(self, out_cpp: str):
        self.out_cpp = out_cpp

    def render_keys(self, snapshot: ExportSnapshot) -> str:
        bin_lines = ",\n".join(f"    {{{cpp_string(label)}, {index}u}}" for label, index in snapshot.bin_table)
        key_lines = ",\n".join(f"    {{{cpp_char16(ch)}, {cpp_string(label)}}}" for ch, label in snapshot.key_table)
        return f"""#pragma once
// Auto-generated keys.hpp

#include <cstddef>
#include <cstdint>
#include <string>
#include <unordered_map>

namespace fmod_keys {{
  static const std::size_t indexWidth = {snapshot.index_width};

  static const std::unordered_map<std::string, std::uint32_t> bin = {{
{bin_lines}
  }};

  static const std::unordered_map<char16_t, std::string> keys = {{
{key_lines}
  }};
}}
"""

    def render_export(self, snapshot: ExportSnapshot) -> str:
        file_lines = ",\n".join(
            f"    {{{cpp_string(r.path)}, {r.offset}u, {r.length}u, {'true' if r.binary else 'false'}}}"
            for r in snapshot.files
        )
        return f"""#pragma once
// Auto-generated export.hpp

#include <cstddef>
#include <string>
#include <vector>

namespace fmod_export {{
  struct FileMeta {{
    std::string path;
    std::size_t offset;
    std::size_t length;
    bool binary;
  }};

  static const std::vector<FileMeta> files = {{
{file_lines}
  }};
}}
"""

    def render(self, snapshot: ExportSnapshot) -> dict:
        return {
            "keys.hpp": self.render_keys(snapshot),
            "export.hpp": self.render_export(snapshot),
            "extract.hpp": EXTRACT_HPP,
            "extractAll.hpp": EXTRACT_ALL_HPP,
        }

    # 헤더 4개 저장 후 {이름: 경로} 반환
    def save(self, snapshot: ExportSnapshot) -> dict:
        os.makedirs(self.out_cpp, exist_ok=True)

        files_written = {}
        for name, content in self.render(snapshot).items():
            path = os.path.join(self.out_cpp, name)
            write_atomic(path, content.encode("utf-8"))
            files_written[name] = path
            logging.info(f"[cppheaders] {name} → {path}")

        logging.info(
            f"[cppheaders] 문자 {len(snapshot.key_table)}개, bin {len(snapshot.bin_table)}개, "
            f"파일 {len(snapshot.files)}개"
        )
        return files_written
