import json
import logging
import os
from pathlib import Path

from git_graph_layout import COLUMN_WIDTH, ROW_HEIGHT

# 配置目录可以通过环境变量覆盖（测试或便携模式使用）
CONFIG_DIR_ENV = "GIT_DASHBOARD_HOME"


def default_config_dir() -> str:
    override = os.getenv(CONFIG_DIR_ENV)
    if override:
        return os.path.expanduser(override)
    return os.path.join(str(Path.home()), ".git_dashboard")


class Settings:
    def __init__(self, config_dir: str | None = None):
        # 创建配置目录
        self.config_dir = config_dir or default_config_dir()
        if not os.path.exists(self.config_dir):
            os.makedirs(self.config_dir)

        # 配置文件路径
        self.config_file = os.path.join(self.config_dir, "settings.json")
        # 仓库列表文件，与设置放在同一目录
        self.repos_file = os.path.join(self.config_dir, "repos.json")

        # 默认设置
        self.settings = {
            "last_repo_id": None,  # 上次查看的仓库
            "graph_limit": 100,  # 提交图一次加载的提交数量
            "row_height": ROW_HEIGHT,  # 提交图行高
            "column_width": COLUMN_WIDTH,  # 提交图列宽
            "splitter_state": None,  # 分割器状态
            "window_geometry": None,  # 窗口位置与大小
        }

        # 加载已有设置
        self.load_settings()

    def load_settings(self):
        """加载设置"""
        if not os.path.exists(self.config_file):
            return
        try:
            with open(self.config_file, "r", encoding="utf-8") as f:
                saved_settings = json.load(f)
            if isinstance(saved_settings, dict):
                self.settings.update(saved_settings)
        except (OSError, ValueError):
            logging.exception("加载设置失败：%s", self.config_file)

    def save_settings(self):
        """保存设置"""
        try:
            with open(self.config_file, "w", encoding="utf-8") as f:
                json.dump(self.settings, f, ensure_ascii=False, indent=2)
        except OSError:
            logging.exception("保存设置失败：%s", self.config_file)

    def get_last_repo_id(self):
        """获取上次查看的仓库"""
        return self.settings.get("last_repo_id")

    def set_last_repo_id(self, repo_id):
        self.settings["last_repo_id"] = repo_id
        self.save_settings()

    def get_graph_limit(self) -> int:
        return int(self.settings.get("graph_limit", 100))

    def get_row_height(self) -> int:
        return int(self.settings.get("row_height", ROW_HEIGHT))

    def get_column_width(self) -> int:
        return int(self.settings.get("column_width", COLUMN_WIDTH))

    def save_splitter_state(self, sizes):
        """保存分割器状态"""
        self.settings["splitter_state"] = sizes
        self.save_settings()

    def get_splitter_state(self):
        """获取分割器状态"""
        return self.settings.get("splitter_state")

    def save_window_geometry(self, geometry):
        """保存窗口位置与大小 [x, y, width, height]"""
        self.settings["window_geometry"] = geometry
        self.save_settings()

    def get_window_geometry(self):
        return self.settings.get("window_geometry")


_settings = None


def get_settings() -> Settings:
    """返回全局设置实例（首次调用时创建）"""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
