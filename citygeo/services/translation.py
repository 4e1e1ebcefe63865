"""Chinese city names mapped to tokens Nominatim can search.

Nominatim matches Latin-script names far better than Chinese input, while it
still returns Chinese output when asked for ``zh-CN``. Queries that exactly
match a known city are rewritten before searching; everything else passes
through untouched.
"""

from __future__ import annotations

import re
from types import MappingProxyType

# Han ideographs: radicals, CJK symbols, Extension A, unified block,
# compatibility ideographs and the supplementary-plane extensions.
_HAN_PATTERN = re.compile(
    "["
    "\u2e80-\u2e99\u2e9b-\u2ef3\u2f00-\u2fd5"
    "\u3005\u3007\u3021-\u3029\u3038-\u303b"
    "\u3400-\u4dbf\u4e00-\u9fff"
    "\uf900-\ufa6d\ufa70-\ufad9"
    "\U00020000-\U0002a6df\U0002a700-\U0002ebe0"
    "\U0002f800-\U0002fa1d\U00030000-\U0003134a"
    "]"
)

CHINESE_CITY_TOKENS = MappingProxyType(
    {
        # Direct-controlled municipalities
        "北京": "beijing", "上海": "shanghai", "天津": "tianjin", "重庆": "chongqing",
        # Northeast
        "长春": "changchun", "哈尔滨": "harbin", "沈阳": "shenyang", "大连": "dalian",
        # North
        "石家庄": "shijiazhuang", "太原": "taiyuan", "呼和浩特": "hohhot",
        # East
        "济南": "jinan", "青岛": "qingdao", "郑州": "zhengzhou", "武汉": "wuhan",
        "长沙": "changsha", "南京": "nanjing", "杭州": "hangzhou", "合肥": "hefei",
        "南昌": "nanchang", "福州": "fuzhou", "厦门": "xiamen",
        # South
        "广州": "guangzhou", "深圳": "shenzhen", "东莞": "dongguan", "珠海": "zhuhai",
        "佛山": "foshan", "南宁": "nanning", "海口": "haikou",
        # Southwest
        "成都": "chengdu", "贵阳": "guiyang", "昆明": "kunming", "拉萨": "lhasa",
        # Northwest
        "西安": "xian", "兰州": "lanzhou", "西宁": "xining", "银川": "yinchuan",
        "乌鲁木齐": "urumqi",
        # Other major cities
        "苏州": "suzhou", "无锡": "wuxi", "常州": "changzhou", "宁波": "ningbo",
        "温州": "wenzhou", "嘉兴": "jiaxing", "烟台": "yantai", "潍坊": "weifang",
        "淄博": "zibo", "威海": "weihai", "洛阳": "luoyang", "开封": "kaifeng",
        "唐山": "tangshan", "秦皇岛": "qinhuangdao", "包头": "baotou",
        "鞍山": "anshan", "抚顺": "fushun", "吉林": "jilin city", "齐齐哈尔": "qiqihar",
        "大庆": "daqing", "牡丹江": "mudanjiang", "佳木斯": "jiamusi",
        "徐州": "xuzhou", "连云港": "lianyungang", "扬州": "yangzhou", "镇江": "zhenjiang",
        "绍兴": "shaoxing", "台州": "taizhou", "金华": "jinhua", "衢州": "quzhou",
        "芜湖": "wuhu", "蚌埠": "bengbu", "马鞍山": "maanshan", "安庆": "anqing",
        "泉州": "quanzhou", "漳州": "zhangzhou", "莆田": "putian", "三明": "sanming",
        "九江": "jiujiang", "景德镇": "jingdezhen", "赣州": "ganzhou",
        "汕头": "shantou", "惠州": "huizhou", "中山": "zhongshan", "江门": "jiangmen",
        "桂林": "guilin", "柳州": "liuzhou", "北海": "beihai",
        "三亚": "sanya", "绵阳": "mianyang", "宜宾": "yibin", "泸州": "luzhou",
        "遵义": "zunyi", "曲靖": "qujing", "玉溪": "yuxi", "咸阳": "xianyang",
        "宝鸡": "baoji", "延安": "yanan", "天水": "tianshui", "白银": "baiyin",
        # Hong Kong, Macau, Taiwan
        "香港": "hong kong", "澳门": "macau", "台北": "taipei", "高雄": "kaohsiung",
        "台中": "taichung", "台南": "tainan", "新北": "new taipei city",
        # International
        "纽约": "new york", "洛杉矶": "los angeles", "旧金山": "san francisco",
        "芝加哥": "chicago", "伦敦": "london", "巴黎": "paris", "东京": "tokyo",
        "首尔": "seoul", "新加坡": "singapore", "悉尼": "sydney", "墨尔本": "melbourne",
        "温哥华": "vancouver", "多伦多": "toronto", "柏林": "berlin", "莫斯科": "moscow",
        "迪拜": "dubai", "曼谷": "bangkok", "吉隆坡": "kuala lumpur",
    }
)


def contains_cjk(text: str) -> bool:
    return _HAN_PATTERN.search(text or "") is not None


def translate_query(query: str) -> str:
    """Return the search token for a known Chinese city, else ``query``."""

    return CHINESE_CITY_TOKENS.get(query, query)


__all__ = ["CHINESE_CITY_TOKENS", "contains_cjk", "translate_query"]
