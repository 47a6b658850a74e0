"""
Repository package for data access layers.

The ads repository is chosen by `ADS_REPOSITORY` (`memory` | `sql`). A custom
implementation can be plugged in with `ADS_REPOSITORY_IMPL`, a dotted path like:

    myapp.data.ads:FirestoreAdsRepository

as long as the class implements `moovie.repositories.ads.AdsRepositoryProtocol`.
"""
