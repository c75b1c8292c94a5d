"""Default section schemas for every page that supports layout customisation.

Each page has a Japanese and an English schema with the same ids in the
same order; only labels differ.  The schema is the source of truth for
which sections exist: PreferenceStore drops persisted ids that are not
listed here and appends new ones with their default visibility.

Adding a section: append it to both locales of the page with the next
``order`` value.  Existing users see it at the end of their layout.
"""

from __future__ import annotations

from src.models.preferences import SectionPreference

_DEFAULT_PAGE = "home"

# Sections every browsing page ends with, after its own main content.
_SHARED_TAIL: list[tuple[str, str, str]] = [
    ("recommendations", "あなたへのおすすめ", "Recommendations"),
    ("weekly-highlights", "今週の注目", "Weekly Highlights"),
    ("trending", "トレンド分析", "Trend Analysis"),
    ("all-products", "全作品一覧", "All Products"),
    ("uncategorized", "出演者情報が未整理の作品", "Uncategorized Products"),
]


def _hub_page(main_id: str, ja: str, en: str) -> list[tuple[str, str, str]]:
    """Sale and history strips, the page's own panel, then the shared tail."""
    return [
        ("sale", "セール中", "On Sale"),
        ("recently-viewed", "最近見た作品", "Recently Viewed"),
        (main_id, ja, en),
        *_SHARED_TAIL,
    ]


# (id, ja label, en label) in default order.
_PAGE_SECTIONS: dict[str, list[tuple[str, str, str]]] = {
    "home": [
        ("sale", "セール中", "On Sale"),
        ("recently-viewed", "最近見た作品", "Recently Viewed"),
        ("recommendations", "あなたへのおすすめ", "Recommendations"),
        ("weekly-highlights", "今週の注目", "Weekly Highlights"),
        ("trending", "トレンド分析", "Trend Analysis"),
        ("all-products", "全作品一覧", "All Products"),
        ("uncategorized", "出演者情報が未整理の作品", "Uncategorized Products"),
        ("fanza-site", "FANZA専門サイト", "FANZA Site"),
    ],
    "products": [
        ("filters", "フィルター", "Filters"),
        ("sort", "並び替え", "Sort"),
        ("grid", "作品一覧", "Products"),
    ],
    "product": [
        ("sample-video", "サンプル動画", "Sample Video"),
        ("product-info", "商品情報", "Product Info"),
        ("price-comparison", "価格比較", "Price Comparison"),
        ("cost-performance", "コスパ分析", "Value Analysis"),
        ("ai-review", "AIレビュー", "AI Review"),
        ("scene-timeline", "シーン情報", "Scene Timeline"),
        ("performer-products", "出演者の他作品", "More by Performer"),
        ("series-products", "同シリーズ", "Same Series"),
        ("maker-products", "同メーカー", "Same Maker"),
        ("similar-network", "類似作品", "Similar Products"),
        ("also-viewed", "よく一緒に見られる", "Also Viewed"),
        ("user-contributions", "ユーザー投稿", "User Contributions"),
    ],
    "actress": [
        ("profile", "プロフィール", "Profile"),
        ("ai-review", "AIレビュー", "AI Review"),
        ("career", "キャリア分析", "Career Analysis"),
        ("top-products", "人気作品", "Top Products"),
        ("on-sale", "セール中", "On Sale"),
        ("filmography", "全作品", "Filmography"),
        ("costar-network", "共演者マップ", "Co-star Network"),
        ("similar-network", "類似女優", "Similar Actresses"),
    ],
    "statistics": [
        ("overview", "概要", "Overview"),
        ("monthly-releases", "月別リリース", "Monthly Releases"),
        ("yearly-stats", "年別統計", "Yearly Stats"),
        ("top-performers", "女優ランキング", "Top Performers"),
        ("top-genres", "ジャンルランキング", "Top Genres"),
        ("maker-share", "メーカーシェア", "Maker Share"),
        ("genre-trends", "ジャンルトレンド", "Genre Trends"),
        ("debut-trends", "デビュー統計", "Debut Trends"),
    ],
    "categories": [
        ("genre", "ジャンル", "Genre"),
        ("situation", "シチュエーション", "Situation"),
        ("play", "プレイ", "Play"),
        ("body", "体型", "Body Type"),
        ("costume", "コスチューム", "Costume"),
        ("other", "その他", "Other"),
    ],
    "discover": [
        ("sale", "セール中", "On Sale"),
        ("recently-viewed", "最近見た作品", "Recently Viewed"),
        ("discover-main", "発掘モード", "Discover"),
        ("filters", "フィルター", "Filters"),
        ("history", "履歴", "History"),
        *_SHARED_TAIL,
    ],
    "series": [
        ("series-info", "シリーズ情報", "Series Info"),
        ("products", "作品一覧", "Products"),
    ],
    "maker": [
        ("maker-info", "メーカー情報", "Maker Info"),
        ("yearly-chart", "年別作品数", "Yearly Products"),
        ("products", "最新作品", "Latest Products"),
        ("popular-performers", "人気女優", "Popular Performers"),
        ("popular-genres", "人気ジャンル", "Popular Genres"),
    ],
    "compare": [
        ("sale", "セール中", "On Sale"),
        ("recently-viewed", "最近見た作品", "Recently Viewed"),
        ("product-search", "作品検索", "Product Search"),
        ("selected-products", "選択中の作品", "Selected Products"),
        ("comparison", "比較表", "Comparison"),
        *_SHARED_TAIL,
    ],
    "compare-performers": [
        ("sale", "セール中", "On Sale"),
        ("recently-viewed", "最近見た作品", "Recently Viewed"),
        ("performer-search", "女優検索", "Performer Search"),
        ("selected-performers", "選択中の女優", "Selected Performers"),
        ("comparison", "比較表", "Comparison"),
        *_SHARED_TAIL,
    ],
    "favorites": _hub_page("favorites-main", "お気に入り", "Favorites"),
    "watchlist": _hub_page("watchlist-main", "後で見る", "Watch Later"),
    "diary": _hub_page("diary-main", "視聴日記", "Viewing Diary"),
    "profile": _hub_page("profile-main", "DNA分析", "DNA Analysis"),
}


def known_pages() -> list[str]:
    return sorted(_PAGE_SECTIONS)


def get_page_section_defaults(page_id: str, locale: str = "ja") -> list[SectionPreference]:
    """Return the default schema for *page_id* in *locale*.

    Unknown pages fall back to the home page schema.  ``"ja"`` selects the
    Japanese labels; every other locale gets English.
    """
    rows = _PAGE_SECTIONS.get(page_id, _PAGE_SECTIONS[_DEFAULT_PAGE])
    use_ja = locale == "ja"
    return [
        SectionPreference(id=section_id, label=ja if use_ja else en, visible=True, order=idx)
        for idx, (section_id, ja, en) in enumerate(rows)
    ]
