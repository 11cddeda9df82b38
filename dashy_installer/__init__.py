"""dashy-installer - dashy 预编译二进制安装器"""

__version__ = "0.1.0"
