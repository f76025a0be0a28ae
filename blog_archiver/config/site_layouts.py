"""Static knowledge about the two supported blog site layouts.

Extraction only supports these two layouts: the
current sakurazaka46 blog and the legacy keyakizaka46 diary, which carries
the earlier posts of members who moved across with the group rename.
Everything the scrapers need to know about a layout (URLs, selector
priority lists, boilerplate phrases) lives here as data so the services
stay layout-agnostic.
"""

from __future__ import annotations

from dataclasses import dataclass

from blog_archiver.models.blog import Member, Site


@dataclass(frozen=True)
class SiteLayout:
    """Selectors and URL scheme for one blog site.

    Selector tuples are tried in priority order; the first element whose
    text passes the field's filter wins.
    """

    site: Site
    base_url: str
    list_url_template: str
    page_size: int
    title_selectors: tuple[str, ...]
    content_selectors: tuple[str, ...]
    image_container_selectors: tuple[str, ...]
    date_selectors: str
    title_exclusions: tuple[str, ...] = ()
    title_first_line_only: bool = False
    text_fallback_selectors: str = ""
    image_container_falls_back_to_body: bool = False
    prefer_listing_date: bool = False

    def list_url(self, member_id: str | int, page: int) -> str:
        return self.list_url_template.format(member_id=member_id, page=page)

    def absolute_url(self, href: str) -> str:
        """Resolve a site-relative href against the layout's origin."""
        if not href:
            return ""
        if href.startswith("http"):
            return href
        if href.startswith("//"):
            return f"https:{href}"
        if not href.startswith("/"):
            href = f"/{href}"
        return f"{self.base_url}{href}"


# Image URLs containing any of these fragments are site chrome, not post
# content (icons, logos, navigation, JASRAC badges, emoji sprites).
IMAGE_EXCLUDE_PATTERNS: tuple[str, ...] = (
    "icon",
    "logo",
    "header",
    "footer",
    "nav",
    "menu",
    "app_",
    "jasrac",
    "twemoji",
)

# Sidebar widgets listing recent entries on the legacy layout.
SIDEBAR_MARKERS: tuple[str, ...] = ("NEW ENTRY", "最新記事")

DETAIL_PATH_FRAGMENT = "/diary/detail/"

SAKURAZAKA = SiteLayout(
    site=Site.SAKURAZAKA,
    base_url="https://sakurazaka46.com",
    list_url_template=(
        "https://sakurazaka46.com/s/s46/diary/blog/list"
        "?ima=0000&page={page}&ct={member_id}&cd=blog"
    ),
    page_size=20,
    title_selectors=(".box-ttl h1", ".box-ttl", "h1.title", "h1", ".blog-title", ".entry-title"),
    title_exclusions=("OFFICIAL BLOG",),
    content_selectors=(".box-article", ".blog-body", ".entry-content", ".blog-content", ".article-body"),
    text_fallback_selectors=".blog-detail, .contents, article, main p",
    image_container_selectors=(".box-article", ".blog-body"),
    date_selectors='.date, .time, [class*="date"]',
)

KEYAKIZAKA = SiteLayout(
    site=Site.KEYAKIZAKA,
    base_url="https://www.keyakizaka46.com",
    list_url_template=(
        "https://www.keyakizaka46.com/s/k46o/diary/member/list"
        "?ima=0000&page={page}&ct={member_id}"
    ),
    page_size=20,
    title_selectors=(".box-ttl", "h1.title", "h1", ".blog-title"),
    title_first_line_only=True,
    content_selectors=(".box-article", ".box--body", ".blog-body", ".blog-content"),
    image_container_selectors=(".box-article, .box--body",),
    image_container_falls_back_to_body=True,
    date_selectors=".date, time",
    prefer_listing_date=True,
)

_LAYOUTS: dict[Site, SiteLayout] = {
    Site.SAKURAZAKA: SAKURAZAKA,
    Site.KEYAKIZAKA: KEYAKIZAKA,
}


def get_layout(site: Site | str) -> SiteLayout:
    return _LAYOUTS[Site(site)]


MEMBER_DIRECTORY_URL = "https://sakurazaka46.com/s/s46/diary/blog/list?ima=0000"

# Legacy diary IDs for members whose history spans both sites.
KEYAKI_MEMBER_MAP: dict[str, str] = {
    "上村 莉菜": "03",
    "尾関 梨香": "04",
    "小池 美波": "06",
    "小林 由依": "07",
    "齋藤 冬優花": "08",
    "菅井 友香": "11",
    "土生 瑞穂": "14",
    "原田 葵": "15",
    "守屋 茜": "18",
    "渡辺 梨加": "20",
    "渡邉 理佐": "21",
    "井上 梨名": "43",
    "関 有美子": "44",
    "武元 唯衣": "45",
    "田村 保乃": "46",
    "藤吉 夏鈴": "47",
    "松田 里奈": "48",
    "松平 璃子": "49",
    "森田 ひかる": "50",
    "山﨑 天": "51",
    "遠藤 光莉": "53",
    "大園 玲": "54",
    "大沼 晶保": "55",
    "幸阪 茉里乃": "56",
    "増本 綺良": "57",
    "守屋 麗奈": "58",
}

# Seed list used when the member directory page cannot be scraped.
_KNOWN_MEMBERS: tuple[tuple[int, str], ...] = (
    (43, "井上 梨名"),
    (45, "武元 唯衣"),
    (46, "田村 保乃"),
    (47, "藤吉 夏鈴"),
    (48, "松田 里奈"),
    (50, "森田 ひかる"),
    (51, "山﨑 天"),
    (53, "遠藤 光莉"),
    (54, "大園 玲"),
    (55, "大沼 晶保"),
    (56, "幸阪 茉里乃"),
    (57, "増本 綺良"),
    (58, "守屋 麗奈"),
    (59, "石森 璃花"),
    (60, "遠藤 理子"),
    (61, "小田倉 麗奈"),
    (62, "小島 凪紗"),
    (63, "谷口 愛季"),
    (64, "中嶋 優月"),
    (65, "的野 美青"),
    (66, "向井 純葉"),
    (67, "村井 優"),
    (68, "村山 美羽"),
    (69, "山下 瞳月"),
    (70, "浅井 恋乃未"),
    (71, "稲熊 ひな"),
    (72, "勝又 春"),
    (73, "佐藤 愛桜"),
    (74, "中川 智尋"),
    (75, "松本 和子"),
    (76, "目黒 陽色"),
    (77, "山川 宇衣"),
    (78, "山田 桃実"),
)


def known_members() -> list[Member]:
    """Hardcoded fallback member list, blog URLs pointing at the listing page."""
    return [
        Member(
            id=member_id,
            name=name,
            blog_url=f"{MEMBER_DIRECTORY_URL}&ct={member_id}",
        )
        for member_id, name in _KNOWN_MEMBERS
    ]
